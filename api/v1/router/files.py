from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
import logging

from service.auth import current_user_id
from service.files.storage import FileStorage
import error

router = APIRouter(tags=["files"])
logger = logging.getLogger(__name__)


@router.get("/files/{owner_id}/{filename}")
def download_file(
    owner_id: str,
    filename: str,
    user_id: str = Depends(current_user_id)
):
    """
    Download an uploaded file. Only its owner can read it.
    """
    if owner_id != user_id:
        raise error.OwnershipError("File belongs to another user")

    file_path = FileStorage().get_file_path(owner_id, filename)
    if not file_path:
        raise error.ResourceNotFoundError("File not found")

    return FileResponse(path=file_path, filename=filename)
