"""HMAC-SHA256 signatures for payment webhooks.

The provider signs the raw request body with the shared secret and
sends the hex digest in the ``X-Webhook-Signature`` header.
"""

from __future__ import annotations

import hashlib
import hmac

from modules.payments.exceptions import InvalidSignature, WebhookNotConfigured

SIGNATURE_HEADER = "X-Webhook-Signature"


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str | None, secret: str) -> None:
    """Raise unless *signature* is the digest of *payload* under *secret*."""
    if not secret:
        raise WebhookNotConfigured("Payment webhook secret is not configured.")
    if not signature:
        raise InvalidSignature("Missing webhook signature.")
    expected = compute_signature(payload, secret)
    if not hmac.compare_digest(expected, signature.strip().lower()):
        raise InvalidSignature("Webhook signature mismatch.")
