import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


def default_log_dir() -> Path:
    env_dir = os.environ.get("NVPN_LOG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".cache" / "nvpn"


class Logger:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._setup_logger()
        return cls._instance

    def _setup_logger(self):
        self.logger = logging.getLogger('nvpn')
        self.logger.setLevel(logging.DEBUG)

        # User-facing messages go to the terminal
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        console_handler.setLevel(logging.INFO)
        self.logger.addHandler(console_handler)

        log_dir = default_log_dir()
        try:
            os.makedirs(log_dir, exist_ok=True)
            # Use RotatingFileHandler to limit log file size
            file_handler = RotatingFileHandler(os.path.join(log_dir, 'nvpn.log'),
                                               maxBytes=5 * 1024 * 1024, backupCount=3)
        except OSError as e:
            self.logger.warning(f"File logging disabled, cannot write to {log_dir}: {e}")
            return

        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(name)s:%(lineno)d - %(pathname)s - %(message)s')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        self.logger.addHandler(file_handler)

    def get_logger(self):
        return self.logger


logger = Logger().get_logger()
