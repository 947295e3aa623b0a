"""
dssdeploy Observability

Structured logging and tracing for deployment runs. Every run gets a
correlation id; every pipeline stage gets a span; every host operation is
logged with the stage that issued it.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                    Deployment Steps                      │
    │  logger.info("msg", artifact=x)   tracer.span(stage)    │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │                  DeployLogger / Tracer                   │
    │  Context propagation, correlation IDs, structured data  │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │                       Handlers                           │
    │          StructuredHandler (json) │ TextHandler          │
    └─────────────────────────────────────────────────────────┘

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import threading
import time
import traceback
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

ROOT_LOGGER_NAME = "dssdeploy"

# Context variables for run-scoped data
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
span_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "span_id", default=""
)
trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "trace_id", default=""
)


class LogLevel(Enum):
    """Log severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class DeployStage(Enum):
    """Pipeline stages, used to categorise log events and spans."""
    RESOLVER = "resolver"
    SEQUENCER = "sequencer"
    CONFIGURE = "configure"
    AUTHORIZE = "authorize"
    SIMULATE = "simulate"
    WRAPPER = "wrapper"
    REGISTRY = "registry"
    MIGRATION = "migration"
    CONFIG = "config"
    CLI = "cli"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    correlation_id: str = ""
    trace_id: str = ""
    span_id: str = ""
    stage: str = ""
    operation: str = ""
    duration_ms: Optional[float] = None
    error_code: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


@dataclass
class Span:
    """
    Tracing span covering one pipeline stage.
    """
    trace_id: str
    span_id: str
    parent_span_id: str = ""
    name: str = ""
    stage: str = ""
    start_time: float = field(default_factory=time.monotonic)
    end_time: Optional[float] = None
    status: str = "ok"
    attributes: Dict[str, Any] = field(default_factory=dict)

    def set_attribute(self, key: str, value: Any) -> None:
        """Set a span attribute."""
        self.attributes[key] = value

    def set_status(self, status: str, message: str = "") -> None:
        """Set span status."""
        self.status = status
        if message:
            self.attributes["status_message"] = message

    def end(self) -> None:
        """End the span."""
        if self.end_time is None:
            self.end_time = time.monotonic()

    @property
    def duration_ms(self) -> float:
        """Get span duration in milliseconds."""
        end = self.end_time or time.monotonic()
        return (end - self.start_time) * 1000


class SpanContext:
    """Context manager for spans."""

    def __init__(self, tracer: "Tracer", name: str, stage: DeployStage, **attributes: Any):
        self.tracer = tracer
        self.name = name
        self.stage = stage
        self.attributes = attributes
        self.span: Optional[Span] = None
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> Span:
        self.span = self.tracer.start_span(self.name, self.stage, **self.attributes)
        self._token = span_id_var.set(self.span.span_id)
        return self.span

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.span:
            if exc_type:
                self.span.set_status("error", str(exc_val))
                self.span.set_attribute("exception_type", exc_type.__name__)
            self.tracer.end_span(self.span)
        if self._token:
            span_id_var.reset(self._token)


class Tracer:
    """
    Minimal tracer.

    Creates spans for each pipeline stage and keeps finished spans so a
    run can report per-stage timings.
    """

    def __init__(self, service_name: str = ROOT_LOGGER_NAME, enabled: bool = True):
        self.service_name = service_name
        self.enabled = enabled
        self._active: Dict[str, Span] = {}
        self._finished: List[Span] = []
        self._lock = threading.RLock()

    def start_trace(self) -> str:
        """Start a new trace and return trace ID."""
        trace_id = uuid.uuid4().hex
        trace_id_var.set(trace_id)
        return trace_id

    def start_span(self, name: str, stage: DeployStage, **attributes: Any) -> Span:
        """Start a new span."""
        trace_id = trace_id_var.get() or self.start_trace()
        span = Span(
            trace_id=trace_id,
            span_id=uuid.uuid4().hex[:16],
            parent_span_id=span_id_var.get(),
            name=name,
            stage=stage.value,
            attributes=attributes,
        )

        with self._lock:
            self._active[span.span_id] = span

        return span

    def end_span(self, span: Span) -> None:
        """End a span and keep it if tracing is enabled."""
        span.end()

        with self._lock:
            self._active.pop(span.span_id, None)
            if self.enabled:
                self._finished.append(span)

    def span(self, name: str, stage: DeployStage, **attributes: Any) -> SpanContext:
        """Create a span context manager."""
        return SpanContext(self, name, stage, **attributes)

    @property
    def finished_spans(self) -> List[Span]:
        with self._lock:
            return list(self._finished)


class StructuredHandler(logging.Handler):
    """Logging handler that outputs structured JSON."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self._stream = stream

    @property
    def stream(self) -> Any:
        # Resolved per write so a replaced sys.stderr is honoured.
        return self._stream or sys.stderr

    def build_event(self, record: logging.LogRecord) -> LogEvent:
        event = LogEvent(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname.lower(),
            logger=record.name,
            message=record.getMessage(),
            correlation_id=correlation_id_var.get(),
            trace_id=trace_id_var.get(),
            span_id=span_id_var.get(),
            stage=getattr(record, "stage", ""),
            operation=getattr(record, "operation", ""),
            duration_ms=getattr(record, "duration_ms", None),
            error_code=getattr(record, "error_code", ""),
            context=getattr(record, "context", {}),
        )
        if record.exc_info:
            event.exception = "".join(traceback.format_exception(*record.exc_info))
        return event

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.stream.write(self.build_event(record).to_json() + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


class TextHandler(StructuredHandler):
    """Single-line human readable output: level, stage, message, context."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = self.build_event(record)
            ctx = " ".join(f"{k}={v}" for k, v in event.context.items())
            line = f"{event.level.upper():<8} [{event.stage or '-'}] {event.message}"
            if ctx:
                line = f"{line} {ctx}"
            self.stream.write(line + "\n")
            if event.exception:
                self.stream.write(event.exception)
            self.stream.flush()
        except Exception:
            self.handleError(record)


def configure_logging(level: str = "info", fmt: str = "json", stream: Any = None) -> logging.Logger:
    """
    Install a single handler on the package logger.

    Calling again replaces the handler, so the CLI can apply the level and
    format from configuration after it has been loaded. An unknown level
    raises ValueError.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, LogLevel(level.lower()).name))
    for handler in list(root.handlers):
        if isinstance(handler, StructuredHandler):
            root.removeHandler(handler)
    root.addHandler(TextHandler(stream) if fmt == "text" else StructuredHandler(stream))
    return root


class DeployLogger:
    """
    Structured logger for deployment steps.

    Automatically includes correlation IDs, trace context,
    and stage information in all log events.
    """

    def __init__(self, name: str, stage: DeployStage):
        self.name = name
        self.stage = stage
        self._logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{stage.value}.{name}")

    def _log(
        self,
        level: int,
        message: str,
        operation: str = "",
        error_code: str = "",
        duration_ms: Optional[float] = None,
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        """Internal log method."""
        extra = {
            "stage": self.stage.value,
            "operation": operation,
            "error_code": error_code,
            "duration_ms": duration_ms,
            "context": context,
        }
        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **context)

    def error(
        self,
        message: str,
        error_code: str = "",
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, error_code=error_code, exc_info=exc_info, **context)


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return f"run-{uuid.uuid4().hex[:12]}"


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """Set the correlation ID for the current context."""
    return correlation_id_var.set(correlation_id)


def get_logger(name: str, stage: DeployStage) -> DeployLogger:
    """Get a logger for a deployment component."""
    return DeployLogger(name, stage)

