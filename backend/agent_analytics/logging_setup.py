import json
import logging

LOG_FORMAT = '{"time":"%(asctime)s","level":"%(levelname)s","message":"%(message)s","module":"%(name)s"}'

_NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler", "urllib3")


class JsonLineFormatter(logging.Formatter):
    """
    Fills LOG_FORMAT with a JSON-escaped message. Tracebacks are folded into
    the message, so every record stays a single valid JSON line.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if record.stack_info:
            message = f"{message}\n{self.formatStack(record.stack_info)}"

        line = logging.makeLogRecord(record.__dict__)
        line.msg = json.dumps(message)[1:-1]
        line.args = None
        line.exc_info = None
        line.exc_text = None
        line.stack_info = None
        return super().format(line)


def configure_logging(debug: bool = False) -> None:
    """Structured-ish JSON lines on stderr; DEBUG only when DEBUG_LOGS is on."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLineFormatter(LOG_FORMAT))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        handlers=[handler],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
