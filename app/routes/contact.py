import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.contact import ContactMessage, ContactStatus
from app.models.user import User
from app.schemas.contact_schemas import ContactSubmit, ContactUpdate
from app.services import email_service
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
def submit_contact(payload: ContactSubmit, session: Session = Depends(get_session)):
    message = ContactMessage(**payload.model_dump())
    session.add(message)
    session.commit()
    session.refresh(message)

    if not email_service.send_contact_notifications(message):
        logger.warning(f"Contact notifications incomplete for message {message.id}")

    return {"message": "Your message has been received", "id": message.id}


@router.get("")
def list_messages(
    status: Optional[ContactStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    query = select(ContactMessage)
    if status:
        query = query.where(ContactMessage.status == status)
    query = query.order_by(ContactMessage.created_at.desc())
    return paginate(session=session, query=query, page=page, page_size=page_size)


@router.get("/{message_id}")
def get_message(
    message_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    message = session.get(ContactMessage, message_id)
    if not message:
        raise HTTPException(404, "Message not found")
    return message


@router.put("/{message_id}")
def update_message(
    message_id: int,
    payload: ContactUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    message = session.get(ContactMessage, message_id)
    if not message:
        raise HTTPException(404, "Message not found")

    if payload.status is not None:
        message.status = payload.status
    if payload.admin_response is not None:
        message.admin_response = payload.admin_response
        message.responded_by = admin.id
        message.responded_at = datetime.utcnow()

    message.updated_at = datetime.utcnow()
    session.add(message)
    session.commit()
    session.refresh(message)
    return message
