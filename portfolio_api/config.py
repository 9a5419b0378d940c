from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env (if present)
load_dotenv()

PACKAGE_DIR = Path(__file__).parent


class Direction(int, Enum):
    ASC = 1
    DESC = -1


# Default listing orders, as ordered (field, direction) pairs
CONTACT_DEFAULT_SORT: list[tuple[str, Direction]] = [("created_at", Direction.DESC)]
PROJECT_DEFAULT_SORT: list[tuple[str, Direction]] = [
    ("featured", Direction.DESC),
    ("order", Direction.ASC),
]
COMMAND_DEFAULT_SORT: list[tuple[str, Direction]] = [
    ("category", Direction.ASC),
    ("order", Direction.ASC),
]

# Width of the name column in `help` output
HELP_COLUMN_WIDTH = 15


class Settings(BaseModel):
    # API key for admin routes (sent via X-API-Key header); empty disables the check
    api_key: str = os.getenv("ADMIN_API_KEY", "")

    # CORS origins (comma-separated or "*")
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")

    # YAML file with commands and projects loaded at startup
    seed_file: str = os.getenv("SEED_FILE", str(PACKAGE_DIR / "seed.yml"))

    # Optional text file replacing the built-in `skills` output
    skills_file: str = os.getenv("SKILLS_FILE", "")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))


settings = Settings()
