"""
Cryptographic Hashing Utilities — audit chain hashing and webhook signatures.
"""
import hashlib
import hmac
import json


def generate_hash(data: dict) -> str:
    """SHA-256 of a dictionary (sorted keys, Decimals and datetimes as str)."""
    canonical = json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def link_hash(content_hash: str, previous_hash: str = "") -> str:
    """SHA-256(previous_hash + content_hash): one link of an audit chain."""
    return hashlib.sha256(f"{previous_hash}{content_hash}".encode("utf-8")).hexdigest()


def sign_payload(raw_body: bytes, secret: str) -> str:
    """HMAC-SHA512 hex digest of a raw request body (Paystack webhook scheme)."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(raw_body: bytes, signature: str | None, secret: str) -> bool:
    """Constant-time check of a webhook signature against the raw body."""
    if not signature or not secret:
        return False
    expected = sign_payload(raw_body, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
