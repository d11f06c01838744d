"""
Engine Utilities

Run ids, redaction of secrets in messages, and JSON conversion of agent payloads.
"""

import re
import uuid
from typing import Any

if hasattr(uuid, "uuid7"):
    new_uuid7 = uuid.uuid7
else:
    from uuid6 import uuid7 as new_uuid7


def uuid7_str() -> str:
    """Time-sortable run id, as 32 hex characters without hyphens."""
    return new_uuid7().hex


# (pattern, replacement, flags), applied in order
_SECRET_PATTERNS = [
    (r'sk-[a-zA-Z0-9]{20,}', '[API_KEY_REDACTED]', 0),
    (r'api[_-]?key["\']?\s*[:=]\s*["\']?[a-zA-Z0-9_-]+', 'api_key=[REDACTED]', re.IGNORECASE),
    (r'Bearer\s+[A-Za-z0-9._~+/=-]+', 'Bearer [REDACTED]', 0),
    (r'(/home|/Users)/[^/\s]+', r'\1/[USER]', 0),
    (r'C:\\Users\\[^\\]+', r'C:\\Users\\[USER]', 0),
]
_SECRET_REGEXES = [(re.compile(pattern, flags), replacement) for pattern, replacement, flags in _SECRET_PATTERNS]

_BASE64_RUN = re.compile(r'(data:[^;]+;base64,)?([A-Za-z0-9+/=]{100,})')


def sanitize_error_message(error: Exception | str) -> str:
    """
    Mask credentials and user home directories in an error message.

    Agent failures are reported back to API callers, so anything that looks
    like an API key, a bearer token or a username in a path is replaced.
    """
    msg = str(error)
    for regex, replacement in _SECRET_REGEXES:
        msg = regex.sub(replacement, msg)
    return msg


def truncate_base64(message: str) -> str:
    """Replace long base64 runs (e.g. inline images in agent payloads) with their length."""
    def shorten(match):
        return f"{match.group(1) or ''}[base64 data, {len(match.group(2))} chars truncated]"

    return _BASE64_RUN.sub(shorten, message)


def make_json_serializable(obj: Any) -> Any:
    """
    Convert an agent input to plain JSON types before it is sent.

    Pydantic models are dumped by alias, enums become their value,
    sets and tuples become lists, datetimes become ISO strings, and
    anything else unknown falls back to str().
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if hasattr(obj, 'model_dump'):
        return make_json_serializable(obj.model_dump(by_alias=True))
    if isinstance(obj, dict):
        return {str(k): make_json_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [make_json_serializable(item) for item in obj]
    if hasattr(obj, 'value'):
        return make_json_serializable(obj.value)
    if hasattr(obj, 'isoformat'):
        return obj.isoformat()
    return str(obj)
