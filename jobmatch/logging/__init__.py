"""Structured logging for the reconciliation service.

Modules obtain loggers via ``get_logger(__name__, component=...)`` and emit
events with ``extra={"event": "<area>.<noun>.<verb>", ...}``.
"""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that stamps a component name and keeps per-call extras.

    The stock LoggerAdapter replaces the caller's ``extra``; this one merges
    them, with call-site fields winning.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, optionally tagging every record with a component.

    Args:
        name: Logger name (typically __name__)
        component: Component label such as "matching" or "pipeline"

    Example:
        >>> logger = get_logger(__name__, component="pipeline")
        >>> logger.info("Run started", extra={"event": "pipeline.run.started"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
