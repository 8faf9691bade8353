import logging
import os

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import StackInfoRenderer, TimeStamper, format_exc_info
from structlog.stdlib import add_log_level

# Detect environment
DEBUG = os.getenv("DJANGO_ENV", "dev") == "dev"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Shared processors
shared_processors = [
    merge_contextvars,
    add_log_level,
    TimeStamper(fmt="iso", utc=True),
    StackInfoRenderer(),
    format_exc_info,
]

if DEBUG:
    RENDERER = structlog.dev.ConsoleRenderer(colors=True, pad_event=0, pad_level=False)
else:
    RENDERER = structlog.processors.JSONRenderer()

# Django LOGGING
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "()": "structlog.stdlib.ProcessorFormatter",
            "processor": RENDERER,
            "foreign_pre_chain": shared_processors,
        },
        "json": {
            "()": "structlog.stdlib.ProcessorFormatter",
            "processor": structlog.processors.JSONRenderer(),
            "foreign_pre_chain": shared_processors,
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain" if DEBUG else "json",
        },
    },
    "loggers": {
        "": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "httpx": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        },
        "common": {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
}

structlog.configure(
    processors=[
        *shared_processors,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, LOG_LEVEL, logging.INFO)),
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)
