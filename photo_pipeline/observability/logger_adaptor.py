import logging
import sys
from contextvars import ContextVar
from time import time_ns
from typing import Any, Dict, Optional, Tuple

from loguru import logger
from opentelemetry._logs import SeverityNumber
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LogRecord
from opentelemetry.sdk._logs._internal.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.trace.span import TraceFlags
from pydantic import BaseModel, Field
from temporalio import activity, workflow

from photo_pipeline.constants import (
    ENABLE_OTLP_LOGS,
    LOG_LEVEL,
    OTEL_BATCH_DELAY_MS,
    OTEL_BATCH_SIZE,
    OTEL_EXPORTER_OTLP_ENDPOINT,
    OTEL_EXPORTER_TIMEOUT_SECONDS,
    OTEL_QUEUE_SIZE,
    OTEL_RESOURCE_ATTRIBUTES,
    SERVICE_NAME,
    SERVICE_VERSION,
)


class LogExtraModel(BaseModel):
    """Pydantic model for log extra fields."""

    client_host: Optional[str] = None
    duration_ms: Optional[float] = None
    method: Optional[str] = None
    path: Optional[str] = None
    request_id: Optional[str] = None
    status_code: Optional[int] = None
    # Pipeline context
    photo_id: Optional[str] = None
    # Workflow context
    workflow_id: Optional[str] = None
    run_id: Optional[str] = None
    workflow_type: Optional[str] = None
    task_queue: Optional[str] = None
    attempt: Optional[int] = None
    # Activity context
    activity_id: Optional[str] = None
    activity_type: Optional[str] = None


class LogRecordModel(BaseModel):
    """Pydantic model for log records."""

    timestamp: float
    level: str
    logger_name: str
    message: str
    file: str
    line: int
    function: str
    extra: LogExtraModel = Field(default_factory=LogExtraModel)


request_context: ContextVar[Dict[str, Any]] = ContextVar("request_context", default={})


class InterceptHandler(logging.Handler):
    """Routes stdlib logging records (uvicorn, temporalio) into loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


logging.basicConfig(
    level=logging.getLevelNamesMapping()[LOG_LEVEL], handlers=[InterceptHandler()]
)

SEVERITY_MAPPING = {
    "DEBUG": SeverityNumber.DEBUG,
    "INFO": SeverityNumber.INFO,
    "WARNING": SeverityNumber.WARN,
    "ERROR": SeverityNumber.ERROR,
    "CRITICAL": SeverityNumber.FATAL,
    "ACTIVITY": SeverityNumber.INFO,
}

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> <blue>[{level}]</blue> "
    "<cyan>{extra[logger_name]}</cyan> - <level>{message}</level>"
)


class PhotoLoggerAdapter:
    """Logger adapter binding Temporal and HTTP request context onto loguru."""

    _sinks_configured = False
    logger_provider: Optional[LoggerProvider] = None

    def __init__(self, logger_name: str) -> None:
        self.logger_name = logger_name
        self.logger = logger

        if not PhotoLoggerAdapter._sinks_configured:
            self._configure_sinks()
            PhotoLoggerAdapter._sinks_configured = True

    @classmethod
    def _configure_sinks(cls) -> None:
        logger.remove()

        if "ACTIVITY" not in logger._core.levels:
            logger.level("ACTIVITY", no=20, color="<cyan>")

        logger.configure(extra={"logger_name": ""})
        logger.add(sys.stderr, format=LOG_FORMAT, level=LOG_LEVEL, colorize=True)

        if ENABLE_OTLP_LOGS:
            try:
                resource_attributes = cls._parse_otel_resource_attributes(
                    OTEL_RESOURCE_ATTRIBUTES
                )
                resource_attributes.setdefault("service.name", SERVICE_NAME)
                resource_attributes.setdefault("service.version", SERVICE_VERSION)

                cls.logger_provider = LoggerProvider(
                    resource=Resource.create(resource_attributes)
                )
                exporter = OTLPLogExporter(
                    endpoint=OTEL_EXPORTER_OTLP_ENDPOINT,
                    timeout=OTEL_EXPORTER_TIMEOUT_SECONDS,
                )
                cls.logger_provider.add_log_record_processor(
                    BatchLogRecordProcessor(
                        exporter,
                        schedule_delay_millis=OTEL_BATCH_DELAY_MS,
                        max_export_batch_size=OTEL_BATCH_SIZE,
                        max_queue_size=OTEL_QUEUE_SIZE,
                    )
                )
                logger.add(cls.otlp_sink, level=LOG_LEVEL)
            except Exception as e:
                logging.error(f"Failed to setup OTLP logging: {str(e)}")

    @staticmethod
    def _parse_otel_resource_attributes(env_var: str) -> Dict[str, str]:
        if not env_var:
            return {}
        return {
            item.split("=", 1)[0].strip(): item.split("=", 1)[1].strip()
            for item in env_var.split(",")
            if "=" in item
        }

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        """Process the log message with temporal and request context."""
        extra = kwargs.pop("extra", None) or {}
        kwargs.update(extra)
        kwargs["logger_name"] = self.logger_name

        ctx = request_context.get()
        if ctx and "request_id" in ctx:
            kwargs["request_id"] = ctx["request_id"]

        try:
            workflow_info = workflow.info()
            kwargs.update(
                {
                    "workflow_id": workflow_info.workflow_id,
                    "run_id": workflow_info.run_id,
                    "workflow_type": workflow_info.workflow_type,
                    "task_queue": workflow_info.task_queue,
                    "attempt": workflow_info.attempt,
                }
            )
            msg = f"{msg} [workflow_id={workflow_info.workflow_id} run_id={workflow_info.run_id}]"
        except Exception:
            pass

        try:
            activity_info = activity.info()
            kwargs.update(
                {
                    "workflow_id": activity_info.workflow_id,
                    "run_id": activity_info.workflow_run_id,
                    "activity_id": activity_info.activity_id,
                    "activity_type": activity_info.activity_type,
                    "task_queue": activity_info.task_queue,
                    "attempt": activity_info.attempt,
                }
            )
            msg = (
                f"{msg} [activity={activity_info.activity_type} "
                f"workflow_id={activity_info.workflow_id} attempt={activity_info.attempt}]"
            )
        except Exception:
            pass

        return msg, kwargs

    def _log(self, level: str, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        msg, kwargs = self.process(msg, kwargs)
        self.logger.opt(exception=exc_info or None, depth=2).bind(**kwargs).log(
            level, msg, *args
        )

    def debug(self, msg: str, *args: Any, **kwargs: Any):
        self._log("DEBUG", msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any):
        self._log("INFO", msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any):
        self._log("WARNING", msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any):
        self._log("ERROR", msg, *args, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any):
        self._log("CRITICAL", msg, *args, **kwargs)

    def activity(self, msg: str, *args: Any, **kwargs: Any):
        """Log an activity lifecycle message."""
        self._log("ACTIVITY", msg, *args, **kwargs)

    @classmethod
    def _create_log_record(cls, record: Dict[str, Any]) -> LogRecord:
        """Create an OpenTelemetry LogRecord."""
        attributes: Dict[str, Any] = {
            "code.filepath": record["file"],
            "code.function": record["function"],
            "code.lineno": record["line"],
            "level": record["level"],
        }
        for key, value in record.get("extra", {}).items():
            if value is None:
                continue
            attributes[key] = (
                value if isinstance(value, (bool, int, float, str)) else str(value)
            )

        return LogRecord(
            timestamp=int(record["timestamp"] * 1e9),
            observed_timestamp=time_ns(),
            trace_id=0,
            span_id=0,
            trace_flags=TraceFlags(0),
            severity_text=record["level"],
            severity_number=SEVERITY_MAPPING.get(
                record["level"], SeverityNumber.UNSPECIFIED
            ),
            body=record["message"],
            resource=cls.logger_provider.resource,
            attributes=attributes,
        )

    @classmethod
    def otlp_sink(cls, message: Any):
        """Process log message and emit to OTLP."""
        try:
            extra = LogExtraModel(
                **{
                    k: v
                    for k, v in message.record["extra"].items()
                    if k in LogExtraModel.model_fields
                }
            )
            log_record = LogRecordModel(
                timestamp=message.record["time"].timestamp(),
                level=message.record["level"].name,
                logger_name=message.record["extra"].get("logger_name", ""),
                message=message.record["message"],
                file=str(message.record["file"].path),
                line=message.record["line"],
                function=message.record["function"],
                extra=extra,
            )
            otel_logger = cls.logger_provider.get_logger(SERVICE_NAME)
            otel_logger.emit(cls._create_log_record(log_record.model_dump()))
        except Exception as e:
            logging.error(f"Error sending log to OpenTelemetry: {e}")


_logger_instances: Dict[str, PhotoLoggerAdapter] = {}


def get_logger(name: str | None = None) -> PhotoLoggerAdapter:
    """Get or create an instance of PhotoLoggerAdapter.

    Args:
        name (str, optional): Logger name. If None, uses this module's name.

    Returns:
        PhotoLoggerAdapter: Logger instance for the specified name
    """
    if name is None:
        name = __name__
    if name not in _logger_instances:
        _logger_instances[name] = PhotoLoggerAdapter(name)

    return _logger_instances[name]

