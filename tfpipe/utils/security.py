"""
Security utilities for tfpipe.

Redaction of credentials from logs and pull-request comments.
"""
import re
from typing import Iterable, List, Optional

REDACTED = "[REDACTED]"

# Secret values registered at runtime (passthrough credentials, API token).
_known_secrets: set[str] = set()

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

_SECRET_FLAGS = ['password', 'passwd', 'pass', 'pwd', 'secret', 'token', 'api-key',
                 'apikey', 'auth', 'credential', 'key']


def register_secrets(values: Iterable[Optional[str]]) -> None:
    """Register secret values that must never appear in logs or comments."""
    for value in values:
        if value and len(value) >= 3:
            _known_secrets.add(value)


def clear_secrets() -> None:
    """Forget all registered secret values."""
    _known_secrets.clear()


def known_secrets() -> List[str]:
    return sorted(_known_secrets)


def strip_ansi(text: str) -> str:
    """Remove ANSI colour and cursor escape sequences."""
    if not text:
        return text
    return _ANSI_ESCAPE.sub("", text)


def redact_sensitive_info(text: str, extra_secrets: Optional[List[str]] = None) -> str:
    """
    Redact sensitive information (passwords, tokens, keys) from text.

    Patterns redacted:
    - Registered secret values and any given in extra_secrets
    - --password='value', --token value, --api-key=value, etc.
    - AWS access key ids (AKIA...)

    Args:
        text: Original text with potential sensitive data
        extra_secrets: Optional list of specific secret values to redact

    Returns:
        Text with sensitive values replaced by [REDACTED]
    """
    if not text:
        return text

    redacted = text

    # Longest first so overlapping secrets are fully masked
    secrets = set(_known_secrets)
    if extra_secrets:
        secrets.update(s for s in extra_secrets if s and len(s) >= 3)
    for secret in sorted(secrets, key=len, reverse=True):
        redacted = redacted.replace(secret, REDACTED)

    for flag in _SECRET_FLAGS:
        redacted = re.sub(rf"(--{flag}[=\s]+)(['\"])([^'\"]+)\2", rf"\1\2{REDACTED}\2", redacted, flags=re.IGNORECASE)
        redacted = re.sub(rf"(--{flag}[=\s]+)(?!\[REDACTED\])([^\s'\"]+)", rf"\1{REDACTED}", redacted, flags=re.IGNORECASE)

    redacted = re.sub(r"\b(AKIA|ASIA)[0-9A-Z]{16}\b", REDACTED, redacted)

    return redacted
