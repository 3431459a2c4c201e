"""Application configuration and constants."""
import logging
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_log_level(name: str, default: int) -> int:
    """Parse logging level name (or number) from environment variable."""
    raw = os.environ.get(name)
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


# Directories
DATA_DIR = Path(os.environ.get("QUIZ_DATA_DIR", Path.cwd() / "data"))
DATA_DIR.mkdir(parents=True, exist_ok=True)

UPLOADS_DIR = Path(os.environ.get("QUIZ_UPLOADS_DIR", DATA_DIR / "uploads"))
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)

# Database (drafts and quiz sessions held by this service)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DATA_DIR / 'quizbuilder.db'}"
)

# External collaborators
BACKEND_URL = os.environ.get("QUIZ_BACKEND_URL", "http://127.0.0.1:5000/api")
BACKEND_TIMEOUT_SECONDS = _parse_int_env("QUIZ_BACKEND_TIMEOUT_SECONDS", 30)
UPLOAD_TIMEOUT_SECONDS = _parse_int_env("QUIZ_UPLOAD_TIMEOUT_SECONDS", 60)

# Logging
LOG_LEVEL = _parse_log_level("QUIZ_LOG_LEVEL", logging.INFO)

# Question collection limits
QUESTION_MIN = 1
QUESTION_MAX = 50
ANSWER_OPTION_MIN = 2
ANSWER_OPTION_MAX = 5  # matching pairs; choice questions stop one below

# Text limits
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
QUESTION_TEXT_MAX_LENGTH = 128
ANSWER_OPTION_TEXT_MAX_LENGTH = 30
MATCHING_TEXT_MAX_LENGTH = 100
FILL_IN_THE_BLANK_MAX_LENGTH = 50

# Transient image references (not yet uploaded)
LOCAL_IMAGE_PREFIX = "blob:"
