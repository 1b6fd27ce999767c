import os
import secrets
import time

from core.config import s3, R2_BUCKET, STORAGE_DIR, logger

SIGNATURES_PREFIX = "signatures"


def _local_path(key: str) -> str:
    path = os.path.abspath(os.path.join(STORAGE_DIR, key))
    # Keys are relative; refuse anything that escapes the storage root
    if not path.startswith(os.path.abspath(STORAGE_DIR) + os.sep):
        raise ValueError(f"invalid storage key: {key}")
    return path


def upload_bytes(key: str, data: bytes, content_type: str = "image/png") -> str:
    """Persist bytes under key and return the key. Raises on failure."""
    if not s3 or not R2_BUCKET:
        local_path = _local_path(key)
        os.makedirs(os.path.dirname(local_path), exist_ok=True)
        with open(local_path, "wb") as f:
            f.write(data)
        logger.info(f"Saved locally: {local_path}")
        return key

    bucket = s3.Bucket(R2_BUCKET)
    bucket.put_object(Key=key, Body=data, ContentType=content_type, ACL="private")
    logger.info(f"Saved to R2: {key}")
    return key


def delete_key(key: str) -> bool:
    """Best-effort delete; a missing key is a no-op. Never raises."""
    if not key:
        return False
    try:
        if s3 and R2_BUCKET:
            s3.Object(R2_BUCKET, key).delete()
            return True
        path = _local_path(key)
        if os.path.isfile(path):
            os.remove(path)
            return True
        return False
    except Exception as ex:
        logger.warning(f"delete_key failed for {key}: {ex}")
        return False


def signature_key(booking_id: str) -> str:
    """signatures/{bookingId}_{timestampMs}_{random}.png"""
    timestamp = int(time.time() * 1000)
    suffix = secrets.token_hex(3)
    return f"{SIGNATURES_PREFIX}/{booking_id}_{timestamp}_{suffix}.png"


def save_signature_image(data: bytes, booking_id: str) -> str:
    return upload_bytes(signature_key(booking_id), data, content_type="image/png")
