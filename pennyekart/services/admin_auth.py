"""Admin token verification and session resolution."""

import base64
import binascii
import hmac
import json
import time
from typing import Optional

from pydantic import ValidationError

from pennyekart.models.admin_session import AdminSession, AdminToken
from pennyekart.services.supabase_client import fetch_active_admin, has_super_admin_role
from pennyekart.utils.errors import AdminAuthError
from pennyekart.utils.logging import get_structured_logger
from pennyekart.utils.settings import allow_unsigned_admin_tokens, get_admin_secret

logger = get_structured_logger(__name__)

SIGNATURE_BYTES = 32


def sign_admin_payload(payload_b64: str, secret: str) -> str:
    """
    Signature used by the admin login function.

    XOR-folds the UTF-8 bytes of payload_b64 + secret into 32 bytes and
    hex-encodes them.
    """
    folded = bytearray(SIGNATURE_BYTES)
    for index, byte in enumerate((payload_b64 + secret).encode("utf-8")):
        folded[index % SIGNATURE_BYTES] ^= byte
    return folded.hex()


def issue_admin_token(token: AdminToken, secret: str) -> str:
    """Encode and sign a token payload."""
    payload_b64 = base64.b64encode(
        json.dumps(token.model_dump(), separators=(",", ":")).encode("utf-8")
    ).decode("ascii")
    return f"{payload_b64}.{sign_admin_payload(payload_b64, secret)}"


def _split_token(raw_token: str) -> tuple[str, str]:
    payload_b64, _, signature = raw_token.strip().partition(".")
    return payload_b64, signature


def decode_admin_token(raw_token: str) -> Optional[AdminToken]:
    """Decode the payload without checking expiry or signature."""
    payload_b64, _ = _split_token(raw_token)
    try:
        payload = json.loads(base64.b64decode(payload_b64, validate=True))
        return AdminToken.model_validate(payload)
    except (binascii.Error, ValueError, ValidationError):
        return None


def verify_admin_token(raw_token: Optional[str], now_ms: Optional[int] = None) -> AdminToken:
    """Decode a token and check its expiry and signature."""
    if not raw_token:
        raise AdminAuthError("Unauthorized - No admin token")

    token = decode_admin_token(raw_token)
    if token is None:
        logger.warning("Malformed admin token")
        raise AdminAuthError("Unauthorized - Invalid admin token")

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if AdminSession(token=token).is_expired(now_ms):
        logger.info("Expired admin token", admin_id=token.admin_id)
        raise AdminAuthError("Unauthorized - Invalid admin token")

    payload_b64, signature = _split_token(raw_token)
    expected = sign_admin_payload(payload_b64, get_admin_secret())
    if not hmac.compare_digest(expected.encode("ascii"), signature.lower().encode("utf-8")):
        if not allow_unsigned_admin_tokens():
            logger.warning("Admin token signature mismatch", admin_id=token.admin_id)
            raise AdminAuthError("Unauthorized - Invalid admin token")
        logger.debug("Admin token signature mismatch accepted (unsigned mode)", admin_id=token.admin_id)

    return token


async def authenticate_admin(raw_token: Optional[str]) -> AdminSession:
    """Resolve the x-admin-token header into an active admin session."""
    token = verify_admin_token(raw_token)

    admin = await fetch_active_admin(token.admin_id)
    if not admin:
        logger.warning("Admin not found or inactive", admin_id=token.admin_id)
        raise AdminAuthError("Unauthorized - Invalid admin token")

    is_super_admin = False
    if token.user_id:
        is_super_admin = await has_super_admin_role(token.user_id)

    session = AdminSession(token=token, is_super_admin=is_super_admin)
    logger.info(
        "Admin authenticated",
        admin_id=token.admin_id,
        division_id=token.division_id,
        is_super_admin=is_super_admin
    )
    return session
