"""
SQLAlchemy models and engine setup for the persisted topic store.
"""
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    func,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class TopicRecord(Base):
    """A stored topic with its explanation."""

    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(200), unique=True, nullable=False)
    stream = Column(String(50))
    category = Column(String(100), index=True)
    explanation = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    tasks = relationship(
        "TaskRecord",
        back_populates="topic",
        cascade="all, delete-orphan",
        order_by="TaskRecord.id",
    )

    def __repr__(self):
        return f"<TopicRecord(id={self.id}, slug={self.slug})>"


class TaskRecord(Base):
    """A practice task owned by exactly one topic."""

    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            "difficulty IN ('beginner', 'intermediate', 'advanced')",
            name="ck_tasks_difficulty",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    difficulty = Column(String(20))
    hint = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    topic = relationship("TopicRecord", back_populates="tasks")


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite URLs get thread-safe settings for the app's threadpool."""
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(url, pool_pre_ping=True)
