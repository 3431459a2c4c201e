"""Path utilities for draft uploads."""
from pathlib import Path

from quizbuilder.config import UPLOADS_DIR
from quizbuilder.utils.file_utils import safe_asset_path


def draft_uploads_dir(draft_id: str) -> Path:
    """Get directory holding a draft's not-yet-uploaded images."""
    return safe_asset_path(UPLOADS_DIR, draft_id)
