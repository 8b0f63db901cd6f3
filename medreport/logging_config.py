import json
import logging
from datetime import datetime, timezone

from medreport.middleware.tracing import current_trace_id

LOGGER_NAME = "medreport"


class JsonFormatter(logging.Formatter):
    def format(self, record):  # type: ignore[override]
        msg = record.msg if isinstance(record.msg, dict) else record.getMessage()
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "function": record.funcName,
            "message": msg,
        }
        trace_id = current_trace_id()
        if trace_id:
            payload["trace_id"] = trace_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    return logger


__all__ = ["JsonFormatter", "configure_logging", "LOGGER_NAME"]
