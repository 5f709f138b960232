"""
Input validators - framework-agnostic, pure functions.

Validators either return a bool or a parsed value; turning a failure into an
``AppError`` is the caller's job so the same helpers serve services and DTOs.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Optional

import validators as _validators
from bson import ObjectId

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


def validate_email(email: str) -> bool:
    """Return True if *email* is a syntactically valid address."""
    if not email:
        return False
    return bool(_validators.email(email))


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Return *value* as an ObjectId, or ``None`` if it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def decode_image_payload(image: str) -> Optional[bytes]:
    """Decode a base64 image, optionally wrapped in a ``data:image/...`` URL.

    Returns:
        The raw bytes, or ``None`` when the payload is empty or not base64.
    """
    if not image:
        return None
    raw = _DATA_URL_PREFIX.sub("", image.strip())
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        return None
    return data or None
