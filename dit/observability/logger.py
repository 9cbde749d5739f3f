# dit/observability/logger.py
# JSON log output for stdout and the access/error files, tagged with the active trace

import logging
import os
import sys

from opentelemetry import trace
from pythonjsonlogger.json import JsonFormatter

LOG_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s %(module)s %(lineno)d %(trace_id)s"


class SpanContextFilter(logging.Filter):
    """Stamp each record with the current span's trace id (None outside a span)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "trace_id", None) is None:
            span_ctx = trace.get_current_span().get_span_context()
            record.trace_id = format(span_ctx.trace_id, "032x") if span_ctx.trace_id else None
        return True


def json_formatter() -> logging.Formatter:
    return JsonFormatter(fmt=LOG_FIELDS, datefmt="%Y-%m-%dT%H:%M:%S%z")


def _is_console(handler: logging.Handler) -> bool:
    return type(handler) is logging.StreamHandler


def configure_logging(config_module) -> None:
    """Switch the process to JSON logs.

    The file loggers from dit.utils.logger keep their files but emit JSON;
    the root logger gets exactly one stdout handler.
    """
    formatter = json_formatter()
    span_filter = SpanContextFilter()

    root = logging.getLogger()
    root.setLevel(getattr(config_module, "LOG_LEVEL", "INFO"))
    os.makedirs(getattr(config_module, "LOGS_PATH", "logs"), exist_ok=True)

    for name, level in (("access", logging.INFO), ("error", logging.ERROR)):
        file_logger = logging.getLogger(name)
        file_logger.setLevel(level)
        file_logger.propagate = False
        for handler in file_logger.handlers:
            handler.setFormatter(formatter)
            handler.addFilter(span_filter)

    if not any(_is_console(h) for h in root.handlers):
        stdout = logging.StreamHandler(stream=sys.stdout)
        stdout.setFormatter(formatter)
        stdout.addFilter(span_filter)
        root.addHandler(stdout)

    logging.getLogger(__name__).info("json logging enabled")
