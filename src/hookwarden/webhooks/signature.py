import hashlib
import hmac
import re

import structlog
from fastapi import HTTPException, Request

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="

_HEX_DIGEST = re.compile(r"[0-9a-fA-F]{64}")


def compute_signature(secret: bytes, body: bytes) -> str:
    """Hex HMAC-SHA256 digest of ``body`` keyed by ``secret``."""
    return hmac.new(secret, msg=body, digestmod=hashlib.sha256).hexdigest()


def verify_signature(secret: bytes, body: bytes, signature_header: str | None) -> bool:
    """
    Check a ``sha256=<hex>`` signature header against the raw request body.

    ``body`` must be the bytes exactly as received. A missing header, a
    malformed header and a mismatch all return False; callers must not tell
    these apart in their response.
    """
    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        return False

    supplied = signature_header[len(SIGNATURE_PREFIX) :]
    if not _HEX_DIGEST.fullmatch(supplied):
        return False

    expected = compute_signature(secret, body)
    return hmac.compare_digest(supplied.lower().encode("ascii"), expected.encode("ascii"))


async def verify_github_signature(request: Request) -> bytes:
    """
    FastAPI dependency that verifies the GitHub webhook signature.

    Reads the ``X-Hub-Signature-256`` header and compares it with an HMAC of
    the raw request body, using the webhook secret stored on the app state.

    Raises:
        HTTPException: 400 if the signature is missing, malformed or invalid.

    Returns:
        The verified raw body.
    """
    secret: bytes = request.app.state.webhook_secret
    body = await request.body()

    if not verify_signature(secret, body, request.headers.get(SIGNATURE_HEADER)):
        logger.warning(
            "webhook_signature_rejected",
            event_name=request.headers.get("X-GitHub-Event"),
            delivery_id=request.headers.get("X-GitHub-Delivery"),
            has_signature=SIGNATURE_HEADER in request.headers,
        )
        raise HTTPException(status_code=400, detail="Invalid webhook signature.")

    logger.debug("webhook_signature_verified")
    return body
