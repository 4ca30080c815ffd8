"""Verification of Stripe webhook signatures.

Stripe signs ``"<timestamp>.<raw body>"`` with HMAC-SHA256 using the
endpoint's signing secret and sends ``Stripe-Signature: t=<ts>,v1=<hex>``.
Several v1 entries may be present while a secret is being rolled.
"""

import hashlib
import hmac
import time

from cineroom.core.errors import SignatureVerificationError

DEFAULT_TOLERANCE_SECONDS = 300


def compute_signature(payload: bytes, secret: str, timestamp: int) -> str:
    signed_payload = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()


def signature_header(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a header value the way Stripe does (used by tests and tooling)."""
    if timestamp is None:
        timestamp = int(time.time())
    return f"t={timestamp},v1={compute_signature(payload, secret, timestamp)}"


def verify_stripe_signature(
    payload: bytes,
    header: str | None,
    secret: str | None,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> int:
    """Check a webhook signature header against the raw payload.

    Args:
        payload: Raw request body, exactly as received.
        header: Value of the Stripe-Signature header.
        secret: Endpoint signing secret.
        tolerance: Maximum accepted age of the signature, in seconds.
        now: Current unix time (defaults to time.time()).

    Returns:
        The signed timestamp.

    Raises:
        SignatureVerificationError: If the secret is missing, the header is
            malformed, no signature matches, or the timestamp is too old.
    """
    if not secret:
        raise SignatureVerificationError("No webhook signing secret configured")
    if not header:
        raise SignatureVerificationError("Missing Stripe-Signature header")

    timestamp: int | None = None
    signatures: list[str] = []
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError as e:
                raise SignatureVerificationError("Malformed timestamp in signature header") from e
        elif key == "v1":
            signatures.append(value)

    if timestamp is None:
        raise SignatureVerificationError("No timestamp in signature header")
    if not signatures:
        raise SignatureVerificationError("No v1 signature in signature header")

    expected = compute_signature(payload, secret, timestamp)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise SignatureVerificationError("No signature matches the payload")

    current = time.time() if now is None else now
    if tolerance > 0 and timestamp < current - tolerance:
        raise SignatureVerificationError("Timestamp outside the tolerance zone")

    return timestamp
