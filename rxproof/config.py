"""Configuration from environment, with an optional .env file in the working directory."""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, List, Mapping, Optional

from dotenv import dotenv_values, find_dotenv

# ── Testnet defaults ──────────────────────────────────────────────────────────
ALGOD_URL = "https://testnet-api.algonode.cloud"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_CONTENT_TYPES = frozenset({"application/pdf", "image/png", "image/jpeg"})
BACKENDS = ("memory", "algorand")


def _int(env: Mapping[str, Optional[str]], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _split(raw: Optional[str]) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings. Secrets (signer mnemonic, algod token) only ever come from the environment."""

    backend: str = "memory"
    network: str = "testnet"
    algod_url: str = ALGOD_URL
    algod_token: str = ""
    app_id: int = 0
    signer_mnemonic: str = ""
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    allowed_content_types: FrozenSet[str] = ALLOWED_CONTENT_TYPES
    http_timeout: int = 10
    wait_rounds: int = 4
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown registry backend {self.backend!r}, expected one of {BACKENDS}")
        if self.backend == "algorand" and self.app_id <= 0:
            raise ValueError("RXPROOF_APP_ID must be set when using the algorand backend")
        if self.max_upload_bytes <= 0:
            raise ValueError("RXPROOF_MAX_UPLOAD_BYTES must be positive")


def get_settings() -> Settings:
    """Build settings from .env (if present) overlaid by the process environment."""
    env = {**dotenv_values(find_dotenv(usecwd=True)), **os.environ}
    allowed = _split(env.get("RXPROOF_ALLOWED_TYPES"))
    return Settings(
        backend=(env.get("RXPROOF_BACKEND") or "memory").strip().lower(),
        network=(env.get("RXPROOF_NETWORK") or "testnet").strip(),
        algod_url=(env.get("RXPROOF_ALGOD_URL") or ALGOD_URL).strip().rstrip("/"),
        algod_token=env.get("RXPROOF_ALGOD_TOKEN") or "",
        app_id=_int(env, "RXPROOF_APP_ID", 0),
        signer_mnemonic=(env.get("RXPROOF_SIGNER_MNEMONIC") or "").strip(),
        max_upload_bytes=_int(env, "RXPROOF_MAX_UPLOAD_BYTES", MAX_UPLOAD_BYTES),
        allowed_content_types=frozenset(allowed) if allowed else ALLOWED_CONTENT_TYPES,
        http_timeout=_int(env, "RXPROOF_HTTP_TIMEOUT", 10),
        wait_rounds=_int(env, "RXPROOF_WAIT_ROUNDS", 4),
        log_level=(env.get("RXPROOF_LOG_LEVEL") or "INFO").strip().upper(),
        cors_origins=_split(env.get("RXPROOF_CORS_ORIGINS")) or ["*"],
    )
