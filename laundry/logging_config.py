import logging

from laundry import config


def setup_logging(level: str = None) -> logging.Logger:
    logger = logging.getLogger("laundry")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(name)s] %(levelname)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level or config.LOG_LEVEL)
    return logger


def redact_user_id(user_id) -> str:
    """Shows the first 8 and last 4 characters of an id, never the whole value."""
    value = str(user_id or "")
    if len(value) < 12:
        return "***"
    return f"{value[:8]}...{value[-4:]}"
