"""
Logging and observability service for the LearnLab backend.
Provides structured logging, request tracing, and performance metrics.
"""
import hashlib
import logging
import time
import uuid
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from collections import defaultdict, deque

from learnlab.config import config


UNMATCHED_ROUTE = "<unmatched>"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RequestContext:
    """Per-request state shared by middleware, services and log events."""

    def __init__(self, request_id: str = None, path: str = None, client_ip: str = None,
                 client_request_id: str = None):
        self.request_id = request_id or uuid.uuid4().hex[:12]
        self.path = path
        # Route template once routing has happened; raw paths never key metrics
        self.endpoint = UNMATCHED_ROUTE
        self.client_ip = client_ip
        self.client_request_id = client_request_id
        self.start_time = time.time()
        self.topic_hash = None
        self.ai_duration = 0.0
        self.source = None
        self.fallback_reason = None
        self.errors = []

    def add_error(self, error_type: str, message: str, details: Dict = None):
        """Add error to request context."""
        self.errors.append({
            "type": error_type,
            "message": message,
            "details": details or {},
            "timestamp": _utc_now()
        })

    def set_topic_hash(self, topic: str):
        """Set topic hash for privacy-safe logging."""
        self.topic_hash = hashlib.md5(topic.encode()).hexdigest()[:8]

    def get_duration(self) -> float:
        """Get total request duration."""
        return time.time() - self.start_time


class PerformanceMetrics:
    """Collects and aggregates performance metrics."""

    def __init__(self, window_size: int = 1000):
        self.window_size = window_size
        self.request_times = deque(maxlen=window_size)
        self.ai_times = deque(maxlen=window_size)
        self.total_requests = 0
        self.error_counts = defaultdict(int)
        self.source_counts = defaultdict(int)
        self.fallback_counts = defaultdict(int)
        # Keyed by route template (or UNMATCHED_ROUTE), so the key set is bounded
        self.endpoint_stats = defaultdict(lambda: {"count": 0, "total_time": 0.0, "errors": 0})

    def record_request(self, context: RequestContext):
        """Record request metrics."""
        duration = context.get_duration()
        self.total_requests += 1
        self.request_times.append(duration)

        if context.ai_duration > 0:
            self.ai_times.append(context.ai_duration)

        if context.source:
            self.source_counts[context.source] += 1
        if context.fallback_reason:
            self.fallback_counts[context.fallback_reason] += 1

        stats = self.endpoint_stats[context.endpoint or UNMATCHED_ROUTE]
        stats["count"] += 1
        stats["total_time"] += duration
        if context.errors:
            stats["errors"] += 1

        # Error stats
        for error in context.errors:
            self.error_counts[error["type"]] += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get current performance statistics."""
        def safe_avg(values):
            return sum(values) / len(values) if values else 0.0

        def safe_percentile(values, percentile):
            if not values:
                return 0.0
            sorted_values = sorted(values)
            index = int(len(sorted_values) * percentile / 100)
            return sorted_values[min(index, len(sorted_values) - 1)]

        return {
            "request_metrics": {
                "total_requests": self.total_requests,
                "avg_duration_ms": safe_avg(self.request_times) * 1000,
                "p95_duration_ms": safe_percentile(self.request_times, 95) * 1000
            },
            "ai_metrics": {
                "total_calls": len(self.ai_times),
                "avg_duration_ms": safe_avg(self.ai_times) * 1000,
                "p95_duration_ms": safe_percentile(self.ai_times, 95) * 1000
            },
            "error_counts": dict(self.error_counts),
            "source_counts": dict(self.source_counts),
            "fallback_counts": dict(self.fallback_counts),
            "endpoint_stats": {
                endpoint: {
                    "count": stats["count"],
                    "avg_duration_ms": (stats["total_time"] / stats["count"] * 1000) if stats["count"] > 0 else 0,
                    "error_rate": (stats["errors"] / stats["count"] * 100) if stats["count"] > 0 else 0
                }
                for endpoint, stats in self.endpoint_stats.items()
            }
        }


class StructuredFormatter(logging.Formatter):
    """Formats records as single-line JSON."""

    CONTEXT_FIELDS = ("request_id", "path", "endpoint", "client_ip", "duration_ms", "topic_hash")

    def format(self, record):
        log_entry = {
            "timestamp": _utc_now(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add request context if available
        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if hasattr(record, "event"):
            log_entry["event"] = record.event
        if hasattr(record, "data"):
            log_entry.update(record.data)

        return json.dumps(log_entry, default=str)


class StructuredLogger:
    """Structured logger with request context and performance tracking."""

    def __init__(self, name: str = "learnlab"):
        self.logger = logging.getLogger(name)
        self.metrics = PerformanceMetrics()
        self.setup_logging()

    def setup_logging(self):
        """Setup logging configuration."""
        if not any(isinstance(h.formatter, StructuredFormatter) for h in self.logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)

        self.logger.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
        self.logger.propagate = False

    def _log(self, level: int, message: str, context: Optional[RequestContext], event: str, **data):
        extra = {"event": event, "data": data}
        if context:
            extra["request_id"] = context.request_id
            if context.topic_hash:
                extra["topic_hash"] = context.topic_hash
        self.logger.log(level, message, extra=extra)

    def log_request_start(self, context: RequestContext):
        """Log request start."""
        self.logger.info(
            f"Request started: {context.path}",
            extra={
                "request_id": context.request_id,
                "path": context.path,
                "client_ip": context.client_ip,
                "event": "request_start"
            }
        )

    def log_request_end(self, context: RequestContext, status_code: int = 200):
        """Log request completion."""
        duration_ms = context.get_duration() * 1000

        # Record metrics
        self.metrics.record_request(context)

        log_level = logging.ERROR if status_code >= 500 else (
            logging.WARNING if context.errors or status_code >= 400 else logging.INFO
        )

        data = {"status_code": status_code}
        if context.source:
            data["source"] = context.source
        if context.fallback_reason:
            data["fallback_reason"] = context.fallback_reason
        if context.client_request_id:
            data["client_request_id"] = context.client_request_id
        if context.ai_duration > 0:
            data["ai_duration_ms"] = context.ai_duration * 1000
        if context.errors:
            data["errors"] = context.errors

        message = f"Request completed: {context.path} ({duration_ms:.1f}ms)"
        if context.errors:
            message += f" with {len(context.errors)} errors"

        self.logger.log(
            log_level,
            message,
            extra={
                "request_id": context.request_id,
                "path": context.path,
                "endpoint": context.endpoint,
                "client_ip": context.client_ip,
                "duration_ms": duration_ms,
                "topic_hash": context.topic_hash,
                "event": "request_end",
                "data": data,
            }
        )

    def log_ai_call(self, context: Optional[RequestContext], model: str, duration: float,
                    success: bool = True, error_code: str = None, error: str = None):
        """Log a Gemini API call."""
        if context:
            context.ai_duration += duration
            if error_code:
                context.add_error(error_code, error or "")

        level = logging.INFO if success else logging.WARNING
        message = f"AI call to {model}: {'success' if success else 'failed'} ({duration * 1000:.1f}ms)"
        self._log(level, message, context, "ai_call",
                  model=model, duration_ms=duration * 1000, success=success,
                  error_code=error_code, error=error)

    def log_fallback(self, context: Optional[RequestContext], source: str, reason: Optional[str]):
        """Log use of fallback content."""
        self._log(logging.INFO, f"Serving {source} fallback content (reason: {reason or 'none'})",
                  context, "fallback_used", source=source, reason=reason)

    def log_validation_error(self, context: Optional[RequestContext], field: str, error: str, value: str = None):
        """Log validation errors."""
        if context:
            context.add_error("VALIDATION_ERROR", error, {"field": field})

        data = {"field": field, "error": error}
        if value and len(str(value)) <= 100:  # Don't log large values
            data["value"] = value

        self._log(logging.WARNING, f"Validation error on {field}: {error}", context, "validation_error", **data)

    def log_rate_limit(self, context: Optional[RequestContext], limit: int, window_seconds: float, retry_after: int):
        """Log rate limiting events."""
        if context:
            context.add_error("RATE_LIMIT_EXCEEDED", f"Exceeded {limit} requests per {window_seconds}s")

        self._log(logging.WARNING, f"Rate limit exceeded on {context.path if context else 'unknown'}",
                  context, "rate_limit", limit=limit, window_seconds=window_seconds, retry_after=retry_after)

    def log_persistence(self, context: Optional[RequestContext], operation: str, success: bool = True,
                        error_code: str = None, error: str = None, **data):
        """Log a topic store operation."""
        if context and error_code:
            context.add_error(error_code, error or "")

        level = logging.INFO if success else logging.ERROR
        message = f"Store {operation}: {'success' if success else 'failed'}"
        self._log(level, message, context, "persistence", operation=operation, success=success,
                  error_code=error_code, error=error, **data)

    def log_session_summary(self, **extra):
        """Log aggregated metrics for the whole process lifetime."""
        summary = self.get_metrics()
        summary.update(extra)
        self._log(logging.INFO,
                  f"Session summary: {summary['request_metrics']['total_requests']} requests served",
                  None, "session_summary", **summary)

    def get_metrics(self) -> Dict[str, Any]:
        """Get current performance metrics."""
        return self.metrics.get_stats()


# Global instance
logger = StructuredLogger()
