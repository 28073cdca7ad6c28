import logging
from pathlib import Path

from signpad.config import Settings

LOG_FORMAT = "%(asctime)s - %(message)s"
ERROR_LOG = "signature_form_errors.log"
SUCCESS_LOG = "signature_form_success.log"

logger = logging.getLogger(__name__)


def _file_handler(path: Path, level: int) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        logger.warning("Log file %s unavailable, continuing without it: %s", path, exc)
        return None
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.name = f"signpad:{path.name}"
    return handler


def _attach(target: logging.Logger, handler: logging.Handler | None) -> None:
    if handler is None:
        return
    if any(h.name == handler.name for h in target.handlers):
        handler.close()
        return
    target.addHandler(handler)


def configure_logging(cfg: Settings) -> None:
    """Attach the append-only error and success logs under ``cfg.log_dir``."""
    root = logging.getLogger("signpad")
    if root.level == logging.NOTSET:
        root.setLevel(logging.INFO)
    if not cfg.log_submissions:
        return

    _attach(root, _file_handler(cfg.log_dir / ERROR_LOG, logging.WARNING))
    _attach(logging.getLogger("signpad.submissions"), _file_handler(cfg.log_dir / SUCCESS_LOG, logging.INFO))
