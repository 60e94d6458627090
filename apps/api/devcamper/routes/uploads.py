"""Public access to uploaded files."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from devcamper.adapters.storage import FileStore
from devcamper.errors import NotFound
from devcamper.routes.dependencies import get_file_store
from devcamper.schemas.error import ErrorResponse

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.get("/{filename}", response_class=FileResponse, responses={404: {"model": ErrorResponse}})
async def get_upload(
    filename: str,
    file_store: Annotated[FileStore, Depends(get_file_store)],
) -> FileResponse:
    path = file_store.locate(filename)
    if path is None:
        raise NotFound(f"No file named {filename}")
    return FileResponse(path)
