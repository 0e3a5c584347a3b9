"""Utility helper functions for the Fragments service."""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict


# RFC 7231 token characters for type/subtype and parameter names
_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_TYPE_RE = re.compile(rf"^{_TOKEN}/{_TOKEN}$")
_PARAM_RE = re.compile(
    rf'\s*;\s*({_TOKEN})\s*=\s*("(?:[\u000b\u0020\u0021\u0023-\u005b\u005d-\u007e\u0080-\u00ff]|\\[\u000b\u0020-\u00ff])*"|{_TOKEN})\s*'
)
_QUOTED_ESCAPE_RE = re.compile(r"\\([\u000b\u0020-\u00ff])")


@dataclass(frozen=True)
class ContentType:
    """
    A parsed Content-Type header value.
    """
    type: str
    parameters: Dict[str, str] = field(default_factory=dict)


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def get_current_timestamp() -> str:
    """
    Get the current UTC time as a sortable ISO-8601 string.

    Returns:
        Timestamp with millisecond precision and a 'Z' suffix
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_content_type(value: str) -> ContentType:
    """
    Parse a Content-Type value into its base type and parameters.

    Args:
        value: Header value (e.g., "text/plain; charset=utf-8")

    Returns:
        ContentType with a lower-cased type and lower-cased parameter names

    Raises:
        ValueError: If the value is not a well-formed media type
    """
    if not isinstance(value, str) or not value:
        raise ValueError("content type must be a non-empty string")

    index = value.find(";")
    media_type = (value[:index] if index != -1 else value).strip()

    if not _TYPE_RE.match(media_type):
        raise ValueError(f"invalid media type: {value!r}")

    parameters: Dict[str, str] = {}
    if index != -1:
        position = index
        while position < len(value):
            match = _PARAM_RE.match(value, position)
            if match is None or match.start() != position:
                raise ValueError(f"invalid parameter format: {value!r}")
            position = match.end()
            name, param_value = match.group(1).lower(), match.group(2)
            if param_value.startswith('"'):
                param_value = _QUOTED_ESCAPE_RE.sub(r"\1", param_value[1:-1])
            parameters[name] = param_value

    return ContentType(type=media_type.lower(), parameters=parameters)


def base_mime(value: str) -> str:
    """
    Strip parameters from a content type.

    Args:
        value: Content type, possibly with parameters

    Returns:
        Lower-cased base mime (e.g., "text/plain")

    Raises:
        ValueError: If the value cannot be parsed
    """
    return parse_content_type(value).type
