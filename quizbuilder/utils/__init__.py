"""Utility modules."""
from quizbuilder.utils.file_utils import remove_files, safe_asset_path, save_upload_file
from quizbuilder.utils.json_utils import compact_json_dump, json_dump, json_load
from quizbuilder.utils.paths import draft_uploads_dir
from quizbuilder.utils.validation import validate_id

__all__ = [
    "remove_files",
    "safe_asset_path",
    "save_upload_file",
    "compact_json_dump",
    "json_dump",
    "json_load",
    "draft_uploads_dir",
    "validate_id",
]
