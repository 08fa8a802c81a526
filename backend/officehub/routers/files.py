from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import FileResponse

from officehub.core import rbac
from officehub.core.deps import get_current_user, get_current_user_header_or_query
from officehub.models.user import User
from officehub.schemas.notification import AttachmentDescriptor
from officehub.services import files as file_service

router = APIRouter(prefix="/api/files", tags=["files"])


@router.api_route("/download", methods=["GET", "HEAD"])
def download_file(
    path: str = Query(..., description="Stored attachment path"),
    current_user: User = Depends(get_current_user_header_or_query),
) -> FileResponse:
    rbac.require(current_user, "files", rbac.READ)
    target = file_service.resolve_upload_path(path)
    return FileResponse(
        path=target,
        filename=file_service.safe_download_name(target),
        media_type=file_service.guess_media_type(target),
    )


@router.api_route("/view", methods=["GET", "HEAD"])
def view_file(
    path: str = Query(..., description="Stored attachment path"),
    current_user: User = Depends(get_current_user_header_or_query),
) -> FileResponse:
    """Serve inline so images and PDFs open in the browser tab."""
    rbac.require(current_user, "files", rbac.READ)
    target = file_service.resolve_upload_path(path)
    filename = file_service.safe_download_name(target)
    return FileResponse(
        path=target,
        media_type=file_service.guess_media_type(target),
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.post("/upload", response_model=AttachmentDescriptor, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
) -> AttachmentDescriptor:
    rbac.require(current_user, "files", rbac.CREATE)
    descriptor = file_service.store_upload(file.filename, file.file)
    return AttachmentDescriptor(**descriptor)
