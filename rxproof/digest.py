"""
Digest producer: maps file bytes to the 32-byte SHA-256 key used by the registry.

Everything here is deterministic and side-effect free apart from reading the
input. Two independent runs over byte-identical content must agree, otherwise
verification against the ledger breaks.
"""

import hashlib
import os
from typing import Iterable, Optional

from rxproof.config import ALLOWED_CONTENT_TYPES, MAX_UPLOAD_BYTES
from rxproof.errors import FileTooLarge, InvalidInput, UnsupportedFileType

DIGEST_SIZE = 32
_CHUNK = 64 * 1024


def compute_digest(data: bytes) -> bytes:
    """SHA-256 digest of raw bytes."""
    return hashlib.sha256(data).digest()


def digest_file(path, max_bytes: int = MAX_UPLOAD_BYTES) -> bytes:
    """
    Hash a file on disk.

    The size bound is checked from the file's metadata before any byte is hashed,
    and again while streaming in case the file grows under us.
    """
    try:
        size = os.stat(path).st_size
    except OSError as e:
        raise InvalidInput(f"Cannot read {path}: {e.strerror or e}") from e
    if size > max_bytes:
        raise FileTooLarge(size, max_bytes)

    hasher = hashlib.sha256()
    seen = 0
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK), b""):
                seen += len(chunk)
                if seen > max_bytes:
                    raise FileTooLarge(seen, max_bytes)
                hasher.update(chunk)
    except OSError as e:
        raise InvalidInput(f"Cannot read {path}: {e.strerror or e}") from e
    return hasher.digest()


def validate_upload(
    content_type: Optional[str],
    size: int,
    max_bytes: int = MAX_UPLOAD_BYTES,
    allowed_types: Iterable[str] = ALLOWED_CONTENT_TYPES,
) -> None:
    """Apply the upload policy. Rejected files never reach compute_digest."""
    # "application/pdf; charset=binary" -> "application/pdf"
    base_type = (content_type or "").split(";", 1)[0].strip().lower()
    if base_type not in set(allowed_types):
        raise UnsupportedFileType(base_type)
    if size > max_bytes:
        raise FileTooLarge(size, max_bytes)


def is_digest(value) -> bool:
    return isinstance(value, (bytes, bytearray)) and len(value) == DIGEST_SIZE


def to_hex(digest: bytes) -> str:
    return bytes(digest).hex()


def from_hex(text: str) -> bytes:
    """Parse the 64-char hex form of a digest."""
    cleaned = (text or "").strip().lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    try:
        raw = bytes.fromhex(cleaned)
    except ValueError:
        raise InvalidInput(f"Not a hex digest: {text!r}") from None
    if len(raw) != DIGEST_SIZE:
        raise InvalidInput(f"Digest must be {DIGEST_SIZE} bytes, got {len(raw)}")
    return raw
