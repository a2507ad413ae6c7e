from __future__ import annotations

import re


_RE_BEARER = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9._\-+/=]{8,})")
_RE_JWT = re.compile(r"\beyJ[A-Za-z0-9_\-]{8,}\.[A-Za-z0-9_\-]{8,}\.[A-Za-z0-9_\-]{8,}\b")
_RE_SUPABASE_KEY = re.compile(r"\bsb_(?:secret|publishable)_[A-Za-z0-9_\-]{10,}\b")
_RE_APIKEY_PARAM = re.compile(r"(?i)\b(apikey=)[^&\s\"']+")
_RE_DB_PASSWORD = re.compile(r"(://[^:/@\s]+:)[^@\s]+(@)")


def redact_secrets(text: str) -> str:
    """
    Best-effort secret redaction for logs and error text.

    Covers service keys (JWT and sb_* formats), bearer tokens, apikey query
    parameters and passwords embedded in connection URLs.
    """
    if not text:
        return text

    out = text
    out = _RE_BEARER.sub("Bearer [REDACTED]", out)
    out = _RE_JWT.sub("[REDACTED]", out)
    out = _RE_SUPABASE_KEY.sub("[REDACTED]", out)
    out = _RE_APIKEY_PARAM.sub(r"\1[REDACTED]", out)
    out = _RE_DB_PASSWORD.sub(r"\1[REDACTED]\2", out)
    return out
