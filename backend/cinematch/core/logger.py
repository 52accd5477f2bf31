import logging
from pathlib import Path
from datetime import date
from contextvars import ContextVar, Token
from typing import Optional, Union

_request_ip: ContextVar[str] = ContextVar("request_ip", default="-")

class DailyFileHandler(logging.Handler):
    """
    Writes to logs/YYYY-MM-DD.log.
    A new file is opened whenever the date changes.
    """
    def __init__(self, log_dir: Union[str, Path] = "logs"):
        super().__init__()
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.current_date = None  # type: Optional[str]
        self.stream = None

    def _rollover_if_needed(self):
        today = date.today().isoformat()  # 'YYYY-MM-DD'
        if self.current_date != today:
            if self.stream:
                self.stream.close()
            self.current_date = today
            file_path = self.log_dir / f"{today}.log"
            self.stream = open(str(file_path), "a", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._rollover_if_needed()
            msg = self.format(record)
            self.stream.write(msg + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)

    def close(self):
        try:
            if self.stream:
                self.stream.close()
                self.stream = None
        finally:
            super().close()

def set_request_ip(ip: str) -> Token:
    return _request_ip.set((ip or "-").strip() or "-")

def reset_request_ip(token: Token) -> None:
    _request_ip.reset(token)

def get_request_ip() -> str:
    return _request_ip.get()

def setup_app_logger(name: str = "cinematch", log_dir: Union[str, Path] = "logs", level: int = logging.INFO) -> logging.Logger:
    """
    Logger writing to logs/YYYY-MM-DD.log, format: "YYYY-MM-DD HH:MM:SS IP - log"
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    # no duplicate handlers
    if not any(isinstance(h, DailyFileHandler) for h in logger.handlers):
        handler = DailyFileHandler(log_dir)
        fmt = logging.Formatter("%(asctime)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.propagate = False
    return logger

def get_app_logger() -> logging.Logger:
    from cinematch.core.config import get_settings
    return setup_app_logger(name="cinematch", log_dir=get_settings().LOG_DIR)

def log_info(msg: str) -> None:
    get_app_logger().info(f"{get_request_ip()} - {msg}")

def log_exc(msg: str) -> None:
    get_app_logger().exception(f"{get_request_ip()} - {msg}")
