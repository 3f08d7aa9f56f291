from __future__ import annotations

from dotenv import load_dotenv

from blulog.api.app import create_app
from blulog.core.config import AppConfig
from blulog.core.logging import setup_logging

load_dotenv()
APP_CONFIG = AppConfig.from_env()
setup_logging(APP_CONFIG.logging.level)

app = create_app(APP_CONFIG)
