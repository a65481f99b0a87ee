# -*- coding: utf-8 -*-
"""Content-derived message identifiers.

The id of a message is the first six characters of the base64-encoded SHA-1
digest of ``defaultMessage`` (joined with ``#`` and the description when one
is given). The same text always yields the same id, on every machine, which
keeps build caches and incremental compilation valid.
"""
from __future__ import annotations

import base64
import hashlib
from typing import Optional

ID_LENGTH = 6
DESCRIPTION_SEPARATOR = "#"


def message_content(default_message: Optional[str], description: Optional[str] = "") -> str:
    """Return the text that is hashed for a message."""
    message = default_message or ""
    if description:
        return f"{message}{DESCRIPTION_SEPARATOR}{description}"
    return message


def generate_override_id(default_message: Optional[str], description: Optional[str] = "") -> str:
    """Compute the 6-character id for ``default_message`` / ``description``.

    ``None`` is hashed as the empty string; this never raises.

    >>> generate_override_id("foo")
    'C+7Hte'
    """
    content = message_content(default_message, description)
    digest = hashlib.sha1(content.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")[:ID_LENGTH]
