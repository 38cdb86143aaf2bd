import logging
import logging.config

from app.core.config import get_settings


class RequestIdFilter(logging.Filter):
    def filter(self, record):
        # Provide a default request_id if not already set
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def build_logging_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id_filter": {"()": RequestIdFilter},
        },
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s [%(name)s] [%(request_id)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(levelname)s %(asctime)s [%(name)s] [%(module)s:%(lineno)d] - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "filters": ["request_id_filter"],
            },
            "error": {
                "formatter": "detailed",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "level": "ERROR",
                "filters": ["request_id_filter"],
            },
        },
        "loggers": {
            "": {"handlers": ["default", "error"], "level": "INFO"},
            "app": {"handlers": ["default", "error"], "level": level.upper(), "propagate": False},
        },
    }


def configure_logging() -> None:
    logging.config.dictConfig(build_logging_config(get_settings().log_level))
