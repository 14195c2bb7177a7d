"""Field annotations and helpers for declaring entity field schemas."""

import re
from typing import Annotated, Any, Tuple

from pydantic import StringConstraints

GUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# String holding a version 1-5 UUID
Guid = Annotated[str, StringConstraints(pattern=GUID_PATTERN)]

# Trimmed, lowercased email address
Email = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_lower=True, pattern=EMAIL_PATTERN),
]

JSON_PATH_RE = re.compile(r"->>?")


def split_field(spec: Any) -> Tuple[Any, bool]:
    """
    Split a field declaration into ``(annotation, required)``.

    A bare annotation is optional, ``(annotation, ...)`` is required.
    """
    if isinstance(spec, tuple):
        if len(spec) != 2:
            raise ValueError(f"Field declaration must be (annotation, ...), got {spec!r}")
        annotation, marker = spec
        return annotation, marker is Ellipsis
    return spec, False


def is_json_path(key: str) -> bool:
    """True for keys such as ``session_data->>username``."""
    return JSON_PATH_RE.search(key) is not None


def base_field(key: str) -> str:
    """Column part of a field key (``session_data->>username`` -> ``session_data``)."""
    return JSON_PATH_RE.split(key, maxsplit=1)[0]
