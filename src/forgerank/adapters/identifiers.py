"\"\"\"Profile identifier normalization and format rules.\"\"\""

from __future__ import annotations

import re

_PROFILE_URL = re.compile(r"^(?:https?://)?(?:www\.)?github\.com/", re.IGNORECASE)
_VALID_IDENTIFIER = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")


def normalize_identifier(raw: str | None) -> str | None:
    """Strip whitespace, a leading ``@`` and profile URL prefixes.

    Returns None when nothing usable remains.
    """
    if raw is None:
        return None
    value = raw.strip()
    value = _PROFILE_URL.sub("", value)
    value = value.lstrip("@").strip("/")
    value = value.split("/", 1)[0].split("?", 1)[0]
    return value or None


def is_valid_identifier(value: str) -> bool:
    return bool(_VALID_IDENTIFIER.match(value))


__all__ = ["is_valid_identifier", "normalize_identifier"]
