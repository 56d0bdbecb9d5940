import logging


class AddTraceIdFilter(logging.Filter):
    def filter(self, record):
        if not hasattr(record, "trace_id"):
            record.trace_id = "system"
        return True


def configure_logging(service: str, level: str = "INFO") -> logging.Logger:
    """Configure root logging once and return the service logger."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - trace_id=%(trace_id)s - %(message)s",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, AddTraceIdFilter) for f in handler.filters):
            handler.addFilter(AddTraceIdFilter())
    logger = logging.getLogger(f"agentbox.{service}")
    logger.addFilter(AddTraceIdFilter())
    return logger
