import logging
import mimetypes
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlmodel import Session, select

from app.database import get_session
from app.models.attachment import Attachment
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.secure_link import SecureLink
from app.services import secure_link_service, storage_service

logger = logging.getLogger(__name__)

router = APIRouter()
download_router = APIRouter()


def _resolve(session: Session, token: str):
    link = session.exec(select(SecureLink).where(SecureLink.token == token)).first()
    if not link:
        raise HTTPException(404, "Link not found")
    if link.is_revoked:
        raise HTTPException(400, "This link has been revoked")

    attachment = session.get(Attachment, link.attachment_id)
    if not attachment:
        raise HTTPException(404, "File not found")
    if attachment.is_revoked:
        raise HTTPException(400, "This file is no longer available")
    return link, attachment


def serve_download(session: Session, token: str) -> Response:
    link, attachment = _resolve(session, token)

    content = storage_service.download_file(attachment.blob_path)
    if content is None:
        logger.warning(f"Blob {attachment.blob_path} missing for attachment {attachment.id}")
        raise HTTPException(404, "File not found")

    secure_link_service.record_download(session, link)

    content_type = mimetypes.guess_type(attachment.file_name)[0] or "application/octet-stream"
    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{attachment.file_name}"'},
    )


@router.get("/materials/{token}")
def download_material(token: str, session: Session = Depends(get_session)):
    return serve_download(session, token)


@router.get("/materials/{token}/info")
def material_info(token: str, session: Session = Depends(get_session)):
    link, attachment = _resolve(session, token)
    enrollment = session.get(Enrollment, link.enrollment_id)
    course = session.get(Course, enrollment.course_id) if enrollment else None

    return {
        "file_name": attachment.file_name,
        "type": attachment.type.value,
        "course_title_ar": course.title_ar if course else None,
        "course_title_en": course.title_en if course else None,
        "download_count": link.download_count,
        "last_downloaded_at": link.last_downloaded_at,
        "created_at": link.created_at,
    }


@download_router.get("/{token}")
def secure_download(token: str, session: Session = Depends(get_session)):
    return serve_download(session, token)
