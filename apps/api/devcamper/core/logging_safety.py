"""Utilities for safe structured logging fields."""

from __future__ import annotations

import hashlib
from typing import Any


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"{prefix}-{digest}"


def safe_email_domain(email: str | None) -> str:
    """Keep only the domain of an address, enough to spot provider issues in logs."""
    _, _, domain = str(email or "").rpartition("@")
    return domain.lower() or "unknown"
