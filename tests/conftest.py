"""Pytest configuration: pin the test environment before rxproof.api.main reads settings."""

import os

import pytest

# Set before rxproof.api.main is imported so the module-level settings are predictable
os.environ["RXPROOF_BACKEND"] = "memory"
os.environ["RXPROOF_APP_ID"] = "0"
os.environ.setdefault("RXPROOF_LOG_LEVEL", "DEBUG")

from rxproof.client import PrescriptionVerifier  # noqa: E402
from rxproof.config import Settings  # noqa: E402
from rxproof.registry import InMemoryLedger, InMemoryRegistry  # noqa: E402

PDF_A = b"%PDF-1.4\nRx: amoxicillin 500mg, 3x daily, 7 days\nDr. A. Smith\n%%EOF\n"
PDF_B = b"%PDF-1.4\nRx: ibuprofen 200mg, as needed\nDr. A. Smith\n%%EOF\n"


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def registry(ledger: InMemoryLedger) -> InMemoryRegistry:
    """Registry for a single caller with a fixed clock."""
    return InMemoryRegistry(ledger, caller="pharmacy-1", clock=lambda: 1_700_000_000)


@pytest.fixture
def settings() -> Settings:
    return Settings(max_upload_bytes=1024)


@pytest.fixture
def verifier(registry: InMemoryRegistry, settings: Settings) -> PrescriptionVerifier:
    return PrescriptionVerifier(registry, settings)


@pytest.fixture
def file_a(tmp_path):
    path = tmp_path / "prescription_a.pdf"
    path.write_bytes(PDF_A)
    return path


@pytest.fixture
def file_b(tmp_path):
    path = tmp_path / "prescription_b.pdf"
    path.write_bytes(PDF_B)
    return path


@pytest.fixture
def pdf_a() -> bytes:
    return PDF_A


@pytest.fixture
def pdf_b() -> bytes:
    return PDF_B
