import json
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.services.email_service import process_sendgrid_events

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_events(body: bytes):
    try:
        text = body.decode("utf-8").strip()
    except UnicodeDecodeError:
        logger.warning("SendGrid webhook body is not valid UTF-8")
        return None
    if not text:
        logger.info("Empty SendGrid webhook payload (verification ping)")
        return None

    try:
        events = json.loads(text)
    except ValueError:
        logger.warning("Malformed SendGrid webhook payload")
        return None
    return [events] if isinstance(events, dict) else events


@router.post("/webhook")
async def sendgrid_webhook(request: Request, session: Session = Depends(get_session)):
    if settings.sendgrid_webhook_key and not request.headers.get("X-Twilio-Email-Event-Webhook-Signature"):
        logger.warning("SendGrid webhook without signature header")

    events = _parse_events(await request.body())
    if not events or not isinstance(events, list):
        return {"received": True, "processed": 0}

    processed = await run_in_threadpool(process_sendgrid_events, session, events)
    return {"received": True, "processed": processed}
