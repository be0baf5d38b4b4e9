import base64
import logging
import secrets
from datetime import datetime
from typing import List, Optional
from sqlmodel import Session, select

from app.models.attachment import Attachment
from app.models.enrollment import Enrollment
from app.models.secure_link import SecureLink

logger = logging.getLogger(__name__)


def generate_token() -> str:
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("ascii").rstrip("=")


def create_secure_links(
    session: Session,
    enrollment_id: int,
    attachment_ids: List[int],
) -> List[SecureLink]:
    enrollment = session.get(Enrollment, enrollment_id)
    if not enrollment:
        raise ValueError("Enrollment not found")

    attachments = session.exec(
        select(Attachment).where(Attachment.id.in_(attachment_ids))
    ).all()
    found = {a.id: a for a in attachments}

    for attachment_id in attachment_ids:
        attachment = found.get(attachment_id)
        if not attachment or attachment.course_id != enrollment.course_id:
            raise ValueError(f"Attachment {attachment_id} does not belong to this course")
        if attachment.is_revoked:
            raise ValueError(f"Attachment {attachment_id} has been revoked")

    links = []
    for attachment_id in attachment_ids:
        existing = session.exec(
            select(SecureLink)
            .where(SecureLink.enrollment_id == enrollment.id)
            .where(SecureLink.attachment_id == attachment_id)
            .where(SecureLink.is_revoked == False)  # noqa: E712
        ).first()
        if existing:
            links.append(existing)
            continue

        link = SecureLink(
            enrollment_id=enrollment.id,
            attachment_id=attachment_id,
            token=generate_token(),
        )
        session.add(link)
        links.append(link)

    session.commit()
    for link in links:
        session.refresh(link)
    return links


def get_secure_link_by_token(session: Session, token: str) -> Optional[SecureLink]:
    return session.exec(
        select(SecureLink)
        .where(SecureLink.token == token)
        .where(SecureLink.is_revoked == False)  # noqa: E712
    ).first()


def revoke_secure_link(session: Session, secure_link_id: int) -> bool:
    link = session.get(SecureLink, secure_link_id)
    if not link:
        return False
    link.is_revoked = True
    session.add(link)
    session.commit()
    logger.info(f"Secure link {secure_link_id} revoked")
    return True


def record_download(session: Session, link: SecureLink):
    link.download_count += 1
    link.last_downloaded_at = datetime.utcnow()
    session.add(link)
    session.commit()
