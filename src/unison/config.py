"""
Unison Configuration
Client-wide defaults. Every value can be overridden from the environment
through ClientConfig.from_env() or per-call (timeout, headers).
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

# Timeouts (seconds)
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_UPLOAD_TIMEOUT = 60.0

# Thread pool for transport calls
DEFAULT_MAX_WORKERS = 16

# Browser profile for curl-cffi impersonation
DEFAULT_IMPERSONATE = "chrome131"

# Coalescing key strategies
KEY_STRATEGY_URL = "url"          # resolved URL only
KEY_STRATEGY_REQUEST = "request"  # method + URL + body hash
KEY_STRATEGIES = (KEY_STRATEGY_URL, KEY_STRATEGY_REQUEST)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Configuration for one APIClient instance."""
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    impersonate: Optional[str] = DEFAULT_IMPERSONATE
    # Accept any server certificate. Off unless explicitly requested.
    insecure_skip_verify: bool = False
    key_strategy: str = KEY_STRATEGY_URL
    encoding: str = "utf-8"
    debug: bool = False

    def __post_init__(self):
        if self.key_strategy not in KEY_STRATEGIES:
            raise ValueError(
                f"key_strategy must be one of {KEY_STRATEGIES}, got {self.key_strategy!r}"
            )
        if self.request_timeout <= 0 or self.upload_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Load configuration from environment.

        Supports:
            UNISON_REQUEST_TIMEOUT, UNISON_UPLOAD_TIMEOUT: seconds
            UNISON_MAX_WORKERS: transport thread pool size
            UNISON_IMPERSONATE: curl-cffi browser profile ("" disables)
            UNISON_INSECURE_SKIP_VERIFY: accept any TLS certificate
            UNISON_KEY_STRATEGY: 'url' or 'request'
            UNISON_DEBUG: emit JSON-line debug events
        """
        impersonate = os.getenv("UNISON_IMPERSONATE", DEFAULT_IMPERSONATE).strip() or None
        return cls(
            request_timeout=_env_float("UNISON_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            upload_timeout=_env_float("UNISON_UPLOAD_TIMEOUT", DEFAULT_UPLOAD_TIMEOUT),
            max_workers=_env_int("UNISON_MAX_WORKERS", DEFAULT_MAX_WORKERS),
            impersonate=impersonate,
            insecure_skip_verify=_env_bool("UNISON_INSECURE_SKIP_VERIFY"),
            key_strategy=os.getenv("UNISON_KEY_STRATEGY", KEY_STRATEGY_URL).strip().lower(),
            debug=_env_bool("UNISON_DEBUG"),
        )

    def with_overrides(self, **changes) -> "ClientConfig":
        return replace(self, **changes)
