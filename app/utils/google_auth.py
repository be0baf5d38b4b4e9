import logging
from google.oauth2 import id_token
from google.auth.transport import requests
from app.config import settings
from typing import Dict, Optional

logger = logging.getLogger(__name__)


def verify_google_token(token: str) -> Optional[Dict[str, str]]:
    if not settings.google_client_id:
        logger.warning("Google login attempted but GOOGLE_CLIENT_ID is not configured")
        return None

    try:
        id_info = id_token.verify_oauth2_token(
            token,
            requests.Request(),
            settings.google_client_id
        )
    except ValueError as e:
        logger.warning(f"Google token verification failed: {e}")
        return None

    if not id_info.get("email_verified", True):
        logger.warning("Google account email is not verified")
        return None

    return {
        "email": id_info.get("email"),
        "name": id_info.get("name") or "Google User",
        "sub": id_info.get("sub"),
    }
