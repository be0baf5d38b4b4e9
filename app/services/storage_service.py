import logging
import time
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from slugify import slugify

from app.config import settings

logger = logging.getLogger(__name__)

_client = None


def get_client():
    global _client
    if _client is None:
        _client = boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint_url,
            aws_access_key_id=settings.storage_access_key_id,
            aws_secret_access_key=settings.storage_secret_access_key,
            region_name=settings.storage_region,
        )
    return _client


def build_key(folder: str, filename: str) -> str:
    name, _, ext = filename.rpartition(".")
    if not name:
        name, ext = ext, ""
    stem = f"{slugify(name)}_{int(time.time())}"
    return f"{folder}/{stem}.{ext.lower()}" if ext else f"{folder}/{stem}"


def upload_file(file, key: str, content_type: Optional[str]) -> str:
    get_client().upload_fileobj(
        file,
        settings.storage_bucket_name,
        key,
        ExtraArgs={"ContentType": content_type or "application/octet-stream"},
    )
    return key


def upload_course_photo(file, filename: str, content_type: Optional[str]) -> str:
    return upload_file(file, build_key("course_photos", filename), content_type)


def upload_attachment(file, course_id: int, filename: str, content_type: Optional[str]) -> str:
    return upload_file(file, build_key(f"attachments/course_{course_id}", filename), content_type)


def download_file(key: str) -> Optional[bytes]:
    """Returns None when the object does not exist."""
    try:
        obj = get_client().get_object(Bucket=settings.storage_bucket_name, Key=key)
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
            return None
        raise
    return obj["Body"].read()


def delete_file(key: str) -> bool:
    try:
        get_client().delete_object(Bucket=settings.storage_bucket_name, Key=key)
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"Failed to delete {key} from storage: {e}")
        return False
    return True


def to_presigned_url(key: Optional[str], expires=3600) -> Optional[str]:
    if not key:
        return None
    return get_client().generate_presigned_url(
        "get_object",
        Params={"Bucket": settings.storage_bucket_name, "Key": key},
        ExpiresIn=expires,
    )
