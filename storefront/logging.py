"""
Root logger configuration

Records go to stdout, as JSON objects tagged with the service name when
LOG_JSON is set, otherwise as plain text for local runs.
"""
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from storefront.config import Settings, settings

# Libraries that log every connection at INFO
QUIET_LOGGERS = ("pika", "httpx", "httpcore")


def build_formatter(config: Settings = settings) -> logging.Formatter:
    if not config.LOG_JSON:
        return logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    return JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        static_fields={"service": config.SERVICE_NAME}
    )


def setup_logging(config: Settings = settings) -> None:
    root = logging.getLogger()
    root.setLevel(config.LOG_LEVEL)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(config))
    # setup may run more than once per process
    root.handlers = [handler]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
