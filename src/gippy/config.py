from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

VERSION = "2.0.0"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT_S = 60.0


def _opt(name: str) -> str | None:
    v = os.getenv(name)
    if not v or not v.strip():
        return None
    return v.strip()


def _float(name: str, default: float) -> float:
    v = _opt(name)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        raise RuntimeError(f"Invalid number in env var {name}: {v!r}")


@dataclass(frozen=True)
class Settings:
    # Credentials
    openai_api_key: str | None = None

    # Chat completions endpoint
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT_S

    # Local storage root (defaults to ~/.gippy)
    home: Path | None = None

    # Telemetry
    appinsights_connection_string: str | None = None

    @staticmethod
    def from_env() -> "Settings":
        home = _opt("GIPPY_HOME")
        return Settings(
            openai_api_key=_opt("OPENAI_API_KEY"),
            base_url=(_opt("OPENAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            request_timeout=_float("GIPPY_REQUEST_TIMEOUT", DEFAULT_TIMEOUT_S),
            home=Path(home).expanduser() if home else None,
            appinsights_connection_string=_opt("APPLICATIONINSIGHTS_CONNECTION_STRING"),
        )
