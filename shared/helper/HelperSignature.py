"""HMAC-SHA256 signatures over raw webhook bodies."""

import hashlib
import hmac


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Return the lowercase hex HMAC-SHA256 of raw_body keyed with secret."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, raw_body: bytes, signature: str | None) -> bool:
    """Check a signature header against the exact bytes received.

    The comparison runs in constant time. A missing header never verifies.
    """
    if not signature:
        return False
    expected = compute_signature(secret, raw_body)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
