"""Tests for the PrescriptionRegistry program, run against the algopy testing context."""

import hashlib

import pytest

algopy = pytest.importorskip("algopy")
algopy_testing = pytest.importorskip("algopy_testing")

from smart_contracts.prescription_registry.contract import PrescriptionRegistry  # noqa: E402


@pytest.fixture
def context():
    with algopy_testing.algopy_testing_context() as ctx:
        yield ctx


def _digest(data: bytes) -> "algopy.Bytes":
    return algopy.Bytes(hashlib.sha256(data).digest())


def test_unknown_digest(context) -> None:
    contract = PrescriptionRegistry()
    assert not contract.is_recorded(_digest(b"never recorded"))


def test_record_then_is_recorded(context) -> None:
    contract = PrescriptionRegistry()
    digest = _digest(b"prescription A")
    contract.record(digest)
    assert contract.is_recorded(digest)
    assert not contract.is_recorded(_digest(b"prescription B"))


def test_record_twice_is_noop(context) -> None:
    contract = PrescriptionRegistry()
    digest = _digest(b"prescription A")
    contract.record(digest)
    contract.record(digest)
    assert contract.is_recorded(digest)


def test_record_rejects_wrong_length(context) -> None:
    contract = PrescriptionRegistry()
    with pytest.raises(AssertionError, match="32 bytes"):
        contract.record(algopy.Bytes(b"\x00" * 31))


def test_is_recorded_malformed_is_false(context) -> None:
    contract = PrescriptionRegistry()
    assert not contract.is_recorded(algopy.Bytes(b"junk"))
