from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from app.core.dependencies import get_storage
from app.core.storage import BlobStoreError, LocalBlobStore

router = APIRouter(tags=["files"])


@router.get("/{key:path}")
def get_stored_file(key: str, storage: LocalBlobStore = Depends(get_storage)):
    try:
        file_path = storage.path(key)
    except BlobStoreError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found.") from exc
    if not file_path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found.")
    return FileResponse(file_path)
