import logging

from opentelemetry import trace

from .config import ServiceSettings


_MISSING = "-"
_LOG_FORMAT = (
    "%(asctime)s %(levelname)-8s [%(service)s] %(name)s "
    "trace=%(trace_id)s span=%(span_id)s :: %(message)s"
)


class ServiceContextFilter(logging.Filter):
    """Stamp every record with the service name and the active span ids."""

    def __init__(self, service: str) -> None:
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = getattr(record, "service", None) or self.service
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            record.trace_id = trace.format_trace_id(span_context.trace_id)
            record.span_id = trace.format_span_id(span_context.span_id)
        else:
            record.trace_id = _MISSING
            record.span_id = _MISSING
        return True


def _context_filter(logger: logging.Logger, service: str) -> ServiceContextFilter:
    for existing in logger.filters:
        if isinstance(existing, ServiceContextFilter):
            existing.service = service
            return existing
    context_filter = ServiceContextFilter(service)
    logger.addFilter(context_filter)
    return context_filter


def configure_logging(settings: ServiceSettings) -> None:
    """Configure the root logger for ``settings.app_name``.

    Calling it again for another service (tests build several apps in one
    process) retargets the existing filter instead of stacking new ones.
    """

    logging.basicConfig(level=settings.log_level, format=_LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    context_filter = _context_filter(root_logger, settings.app_name)
    for handler in root_logger.handlers:
        if context_filter not in handler.filters:
            handler.addFilter(context_filter)
