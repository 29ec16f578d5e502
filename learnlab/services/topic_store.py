"""
Relational topic store for the persisted variant.
Topics and their tasks are inserted once and read many times.
"""
import re
import logging
from typing import Dict, List, Optional, Tuple, Any

from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from learnlab.database import Base, TaskRecord, TopicRecord, build_engine
from learnlab.errors import PersistenceError, SlugConflictError, ValidationError
from learnlab.models import LearningGuide, Task, TopicCreate, SOURCE_DATABASE
from learnlab.services.curated_topics import CURATED_GUIDES

logger = logging.getLogger(__name__)

RELATED_TOPIC_LIMIT = 3


def slugify(title: str) -> str:
    """Lower-case the title and replace each run of non-alphanumerics with '-'."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower())


class TopicStore:
    """SQLAlchemy-backed store(topic) / fetch(query)."""

    def __init__(self, database_url: str):
        self.engine = build_engine(database_url)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        self.ready = False

    def init_schema(self, seed: bool = True) -> None:
        """
        Create tables if they don't exist and seed sample topics into an empty store.

        Raises:
            PersistenceError: If the database is unreachable
        """
        try:
            Base.metadata.create_all(self.engine)
            if seed and self.count() == 0:
                self.seed_samples()
        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise PersistenceError(f"Database initialization failed: {e}") from e

        self.ready = True
        logger.info("Database initialized successfully")

    def seed_samples(self, samples: Optional[Dict[str, Dict[str, Any]]] = None) -> int:
        """Insert the curated guides as sample topics. Returns the number inserted."""
        samples = samples if samples is not None else CURATED_GUIDES
        inserted = 0
        for entry in samples.values():
            self.store(TopicCreate.model_validate({
                key: entry.get(key) for key in ("title", "explanation", "tasks", "stream", "category")
            }))
            inserted += 1
        logger.info(f"Sample data inserted: {inserted} topics")
        return inserted

    def count(self) -> int:
        with self.Session() as session:
            return session.scalar(select(func.count()).select_from(TopicRecord)) or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    def fetch(self, query: str) -> Optional[LearningGuide]:
        """
        Find the first topic whose title or slug contains the query (case-insensitive).

        Args:
            query: Free-text topic

        Returns:
            LearningGuide built from the stored row, or None if nothing matches

        Raises:
            PersistenceError: On any database failure
        """
        try:
            with self.Session() as session:
                stmt = (
                    select(TopicRecord)
                    .where(or_(
                        TopicRecord.title.icontains(query, autoescape=True),
                        TopicRecord.slug.icontains(query, autoescape=True),
                    ))
                    .order_by(TopicRecord.id)
                    .limit(1)
                )
                record = session.scalars(stmt).first()
                if record is None:
                    return None

                related: List[str] = []
                if record.category:
                    related = list(session.scalars(
                        select(TopicRecord.title)
                        .where(TopicRecord.category == record.category, TopicRecord.id != record.id)
                        .order_by(TopicRecord.id)
                        .limit(RELATED_TOPIC_LIMIT)
                    ))

                return LearningGuide(
                    title=record.title,
                    explanation=record.explanation,
                    tasks=[
                        Task(
                            title=task.title,
                            description=task.description,
                            difficulty=task.difficulty or "beginner",
                            hint=task.hint,
                        )
                        for task in record.tasks
                    ],
                    stream=record.stream,
                    category=record.category,
                    related_topics=related or None,
                    source=SOURCE_DATABASE,
                )
        except SQLAlchemyError as e:
            logger.error(f"Topic lookup failed: {e}")
            raise PersistenceError(f"Topic lookup failed: {e}") from e

    def store(self, topic: TopicCreate) -> Tuple[int, str]:
        """
        Insert a topic and its tasks in a single transaction.

        Returns:
            (topic id, slug)

        Raises:
            ValidationError: Title has no letters or digits to build a slug from
            SlugConflictError: A topic with the same slug already exists
            PersistenceError: On any other database failure
        """
        slug = slugify(topic.title)
        if not slug.strip("-"):
            raise ValidationError("Title must contain letters or numbers")

        try:
            with self.Session.begin() as session:
                existing = session.scalar(select(TopicRecord.id).where(TopicRecord.slug == slug))
                if existing is not None:
                    raise SlugConflictError(f"A topic with slug '{slug}' already exists (id {existing})")

                record = TopicRecord(
                    title=topic.title,
                    slug=slug,
                    stream=topic.stream,
                    category=topic.category,
                    explanation=topic.explanation,
                    tasks=[
                        TaskRecord(
                            title=task.title,
                            description=task.description,
                            difficulty=task.difficulty,
                            hint=task.hint,
                        )
                        for task in topic.tasks
                    ],
                )
                session.add(record)
                session.flush()
                topic_id = record.id
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same slug
            if "slug" in str(e.orig).lower():
                raise SlugConflictError(f"A topic with slug '{slug}' already exists") from e
            logger.error(f"Topic insert failed: {e}")
            raise PersistenceError(f"Topic insert failed: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Topic insert failed: {e}")
            raise PersistenceError(f"Topic insert failed: {e}") from e

        logger.info(f"Stored topic {topic_id} ({slug}) with {len(topic.tasks)} tasks")
        return topic_id, slug

    def dispose(self) -> None:
        self.engine.dispose()
