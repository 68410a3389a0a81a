"""
Centralized environment variable loader.

This module loads .env files from both the root and backend directories,
ensuring all environment variables are available throughout the project.

Should be imported at the start of any main entry point.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent.parent
ROOT_DIR = BACKEND_DIR.parent


def load_env() -> None:
    """
    Load environment variables from .env files.

    Searches for and loads .env files in the following order:
    1. root/.env (general app config)
    2. backend/.env (provider keys; overrides root on conflicts)
    """
    for env_file in (ROOT_DIR / ".env", BACKEND_DIR / ".env"):
        if env_file.exists():
            load_dotenv(env_file, override=True)
            logger.info(f"Loaded environment variables from {env_file}")
