import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from lowdeep.config.settings import settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if settings.log_redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("lowdeep")
    logger.setLevel(logging.INFO)
    if not settings.log_to_file:
        return logger
    if any(getattr(h, "_lowdeep_json", False) for h in logger.handlers):
        return logger
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "lowdeep.log", encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter())
    fh._lowdeep_json = True
    logger.addHandler(fh)
    return logger


logger = setup_logger()
