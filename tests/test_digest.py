"""Tests for the digest producer and upload policy."""

import hashlib
import os

import pytest

from rxproof.digest import (
    DIGEST_SIZE,
    compute_digest,
    digest_file,
    from_hex,
    is_digest,
    to_hex,
    validate_upload,
)
from rxproof.errors import FileTooLarge, InvalidInput, UnsupportedFileType


def test_compute_digest_is_sha256(pdf_a: bytes) -> None:
    """Digest is the raw 32-byte SHA-256 of the content."""
    digest = compute_digest(pdf_a)
    assert len(digest) == DIGEST_SIZE
    assert digest == hashlib.sha256(pdf_a).digest()


def test_compute_digest_deterministic(pdf_a: bytes) -> None:
    """Byte-identical inputs, including separate copies, give the same digest."""
    assert compute_digest(pdf_a) == compute_digest(bytes(bytearray(pdf_a)))


def test_known_vector() -> None:
    """Empty input matches the published SHA-256 test vector."""
    assert to_hex(compute_digest(b"")) == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_single_bit_flips_change_digest(pdf_a: bytes) -> None:
    """Flipping any one bit in a handful of positions yields a distinct digest."""
    base = compute_digest(pdf_a)
    seen = {base}
    for pos in (0, 1, len(pdf_a) // 2, len(pdf_a) - 1):
        for bit in (0, 7):
            mutated = bytearray(pdf_a)
            mutated[pos] ^= 1 << bit
            digest = compute_digest(bytes(mutated))
            assert digest != base
            seen.add(digest)
    assert len(seen) == 1 + 4 * 2


def test_digest_file_matches_bytes(file_a, pdf_a: bytes) -> None:
    """Streaming a file gives the same digest as hashing its bytes."""
    assert digest_file(file_a) == compute_digest(pdf_a)


def test_digest_file_larger_than_chunk(tmp_path) -> None:
    """Files spanning several read chunks hash correctly."""
    data = os.urandom(200 * 1024)
    path = tmp_path / "scan.png"
    path.write_bytes(data)
    assert digest_file(path) == hashlib.sha256(data).digest()


def test_digest_file_missing(tmp_path) -> None:
    """An unreadable path is InvalidInput."""
    with pytest.raises(InvalidInput):
        digest_file(tmp_path / "nope.pdf")


def test_digest_file_too_large(file_a) -> None:
    """Size policy is enforced before hashing."""
    with pytest.raises(FileTooLarge) as excinfo:
        digest_file(file_a, max_bytes=10)
    assert excinfo.value.limit == 10
    assert isinstance(excinfo.value, InvalidInput)


def test_validate_upload_accepts_allowed_types() -> None:
    validate_upload("application/pdf", 100)
    validate_upload("image/png", 100)
    validate_upload("IMAGE/JPEG; charset=binary", 100)


def test_validate_upload_rejects_type() -> None:
    with pytest.raises(UnsupportedFileType):
        validate_upload("text/html", 10)
    with pytest.raises(UnsupportedFileType):
        validate_upload(None, 10)


def test_validate_upload_rejects_size() -> None:
    with pytest.raises(FileTooLarge):
        validate_upload("application/pdf", 10 * 1024 * 1024 + 1)


def test_hex_round_trip(pdf_a: bytes) -> None:
    digest = compute_digest(pdf_a)
    assert from_hex(to_hex(digest)) == digest
    assert from_hex("0x" + to_hex(digest).upper()) == digest


@pytest.mark.parametrize("text", ["", "zz", "abcd", "00" * 33])
def test_from_hex_rejects_malformed(text: str) -> None:
    with pytest.raises(InvalidInput):
        from_hex(text)


def test_is_digest() -> None:
    assert is_digest(b"\x00" * 32)
    assert not is_digest(b"\x00" * 31)
    assert not is_digest("0" * 32)
