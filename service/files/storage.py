import os
from typing import Dict, Any, Optional
import logging
from pathlib import Path

import error
from config.setting import settings
from util.gen import generate_storage_name

logger = logging.getLogger(__name__)


class FileStorage:
    """
    Local storage for uploaded study material.
    Files live under <storage_dir>/<user_id>/ and are only served to their owner.
    """

    def __init__(self, storage_dir: Optional[str] = None):
        self.storage_dir = storage_dir or settings.FILE_STORAGE_DIR

        # Create storage directory if it doesn't exist
        Path(self.storage_dir).mkdir(parents=True, exist_ok=True)

    def save_file(self, content: bytes, filename: str, user_id: str) -> Dict[str, Any]:
        """
        Save an uploaded file and return where it can be downloaded
        """
        file_ext = os.path.splitext(filename)[1].lower()
        stored_filename = generate_storage_name(file_ext)

        user_dir = os.path.join(self.storage_dir, user_id)
        Path(user_dir).mkdir(parents=True, exist_ok=True)
        file_path = os.path.join(user_dir, stored_filename)

        try:
            with open(file_path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to store {filename} for user {user_id}: {e}")
            raise error.ExternalServiceError("Erro no upload do arquivo")

        return {
            "filename": stored_filename,
            "file_path": file_path,
            "download_url": f"{settings.API_PREFIX}/files/{user_id}/{stored_filename}",
            "file_size": len(content),
        }

    def get_file_path(self, user_id: str, filename: str) -> Optional[str]:
        """
        Resolve a stored file, refusing names that escape the user's directory
        """
        user_dir = os.path.realpath(os.path.join(self.storage_dir, user_id))
        file_path = os.path.realpath(os.path.join(user_dir, filename))
        if os.path.dirname(file_path) != user_dir:
            return None
        return file_path if os.path.isfile(file_path) else None

    def delete_by_url(self, download_url: Optional[str]) -> bool:
        """
        Delete the file behind a download URL produced by ``save_file``
        """
        if not download_url:
            return False
        parts = download_url.rstrip("/").split("/")
        if len(parts) < 2:
            return False
        file_path = self.get_file_path(parts[-2], parts[-1])
        if not file_path:
            return False
        try:
            os.remove(file_path)
            return True
        except OSError as e:
            logger.error(f"Failed to delete file {file_path}: {e}")
            return False
