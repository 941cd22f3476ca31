# /managea/config.py

"""
Central configuration for the Managea backend.

All values come from the process environment. A local `.env` file is merged
in first so developers can keep their settings out of the shell profile.
"""

import os
import sys
import logging
from typing import List, Optional

from dotenv import load_dotenv

# --- CONFIGURATION ---
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./managea.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS: List[str] = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
]
REPORT_TITLE = os.getenv("REPORT_TITLE", "Managea")
TOP_FINES_LIMIT = int(os.getenv("TOP_FINES_LIMIT", "5"))

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a single stream handler to the root logger. Safe to call twice."""
    root = logging.getLogger()
    root.setLevel(level or LOG_LEVEL)

    if any(getattr(h, "_managea_handler", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._managea_handler = True
    root.addHandler(handler)
