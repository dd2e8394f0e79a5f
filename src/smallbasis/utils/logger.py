import logging
from pathlib import Path

LOGGER_NAME = "smallbasis"


def setup_logger(log_path: Path | str | None = None, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(ch)
        if log_path:
            log_path = Path(log_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_path, encoding="utf-8")
            fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
            logger.addHandler(fh)
    return logger


def get_logger() -> logging.Logger:
    """Library-side accessor; handlers are only attached by ``setup_logger``."""
    return logging.getLogger(LOGGER_NAME)
