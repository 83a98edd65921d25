"""Logging setup shared by the API and the access layer."""

import structlog


def configure_logging(log_level: str, json_logs: bool = False) -> None:
    """Configure structlog for the API process.

    Every event carries its level and a UTC timestamp. With ``json_logs`` each
    event is rendered as one JSON line; otherwise the console renderer is used.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()),
    )
