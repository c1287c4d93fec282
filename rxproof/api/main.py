"""
RxProof HTTP API.

The upload form posts a prescription file here; the API hashes it in memory,
throws the bytes away and talks to the presence registry with the digest only.
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from rxproof import __version__
from rxproof.client import PrescriptionVerifier, build_registry
from rxproof.config import get_settings
from rxproof.digest import from_hex, to_hex
from rxproof.errors import (
    FileTooLarge,
    InvalidInput,
    LedgerUnavailable,
    SubmissionRejected,
    UnsupportedFileType,
)
from rxproof.registry import ACCESS_POLICY

log = logging.getLogger(__name__)

settings = get_settings()


def setup_logging(level: str = settings.log_level) -> None:
    """Send the rxproof loggers to stderr."""
    root = logging.getLogger("rxproof")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.propagate = False
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    root.addHandler(handler)


setup_logging()

_verifier: Optional[PrescriptionVerifier] = None


def get_verifier() -> PrescriptionVerifier:
    """Process-wide verifier, built on first use from settings."""
    global _verifier
    if _verifier is None:
        _verifier = PrescriptionVerifier(build_registry(settings), settings)
    return _verifier


app = FastAPI(title="RxProof API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error mapping ─────────────────────────────────────────────────────────────
@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(FileTooLarge)
async def too_large_handler(request: Request, exc: FileTooLarge) -> JSONResponse:
    return JSONResponse(status_code=413, content={"detail": str(exc)})


@app.exception_handler(UnsupportedFileType)
async def unsupported_type_handler(request: Request, exc: UnsupportedFileType) -> JSONResponse:
    return JSONResponse(status_code=415, content={"detail": str(exc)})


@app.exception_handler(SubmissionRejected)
async def rejected_handler(request: Request, exc: SubmissionRejected) -> JSONResponse:
    log.warning("Record rejected: %s", exc)
    return JSONResponse(
        status_code=502,
        content={"detail": "Verification was not recorded. Please retry.", "reason": str(exc)},
    )


@app.exception_handler(LedgerUnavailable)
async def unavailable_handler(request: Request, exc: LedgerUnavailable) -> JSONResponse:
    log.error("Ledger unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Ledger is unavailable. Please retry."})


async def _read_upload(file: UploadFile, verifier: PrescriptionVerifier) -> bytes:
    # One byte past the limit is enough to know the file is too large
    limit = verifier.settings.max_upload_bytes
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise FileTooLarge(file.size or len(data), limit)
    return data


# ── Routes ────────────────────────────────────────────────────────────────────
@app.get("/")
async def root():
    return {
        "status": "ok",
        "message": "RxProof API is running",
        "backend": settings.backend,
        "network": settings.network,
        "app_id": settings.app_id,
        "access": {who: sorted(ops) for who, ops in ACCESS_POLICY.items()},
        "endpoints": ["/compute-hash", "/record", "/verify", "/verify/{digest}"],
    }


@app.post("/compute-hash")
async def compute_hash(file: UploadFile = File(...), verifier: PrescriptionVerifier = Depends(get_verifier)):
    """Digest of the uploaded file, for callers that sign the record transaction themselves."""
    data = await _read_upload(file, verifier)
    digest = verifier.fingerprint(data, file.content_type or "")
    log.info("Computed digest %s (%d bytes)", to_hex(digest)[:12], len(data))
    return {"digest": to_hex(digest), "size": len(data), "status": "ok"}


@app.post("/record")
async def record(file: UploadFile = File(...), verifier: PrescriptionVerifier = Depends(get_verifier)):
    data = await _read_upload(file, verifier)
    digest = verifier.fingerprint(data, file.content_type or "")
    outcome = await run_in_threadpool(verifier.record, digest)
    body = {"digest": to_hex(digest), "status": "Recorded" if outcome.newly_recorded else "Already Recorded"}
    if outcome.notification is not None:
        body.update(outcome.notification.to_dict())
    return body


def _verification(digest_hex: str, recorded: bool) -> dict:
    return {"digest": digest_hex, "recorded": recorded, "status": "Verified" if recorded else "Not Recorded"}


@app.post("/verify")
async def verify(file: UploadFile = File(...), verifier: PrescriptionVerifier = Depends(get_verifier)):
    data = await _read_upload(file, verifier)
    digest = verifier.fingerprint(data, file.content_type or "")
    recorded = await run_in_threadpool(verifier.verify, digest)
    return _verification(to_hex(digest), recorded)


@app.get("/verify/{digest_hex}")
async def verify_digest(digest_hex: str, verifier: PrescriptionVerifier = Depends(get_verifier)):
    """Look up a digest directly. Anything that is not a digest is simply not recorded."""
    try:
        digest = from_hex(digest_hex)
    except InvalidInput:
        return _verification(digest_hex, False)
    recorded = await run_in_threadpool(verifier.verify, digest)
    return _verification(to_hex(digest), recorded)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
