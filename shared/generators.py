"""
Random code and object key generators.

Codes use the ``secrets`` module; object keys only need to be unique per
account and are derived from the current time.
"""

from __future__ import annotations

import secrets
import string
from datetime import datetime
from typing import Optional

from shared.datetime_utils import utcnow

PROFILE_IMAGE_PREFIX = "profile_images"


def generate_otp_code(length: int = 6) -> str:
    """Generate a cryptographically secure numeric OTP.

    Args:
        length: Number of digits (default 6).

    Returns:
        String of random decimal digits.
    """
    return "".join(secrets.choice(string.digits) for _ in range(length))


def generate_profile_image_key(account_id: str, now: Optional[datetime] = None) -> str:
    """Object key for a freshly uploaded profile image.

    ``profile_images/<account_id>-<epoch millis>.jpg``
    """
    moment = now or utcnow()
    millis = int(moment.timestamp() * 1000)
    return f"{PROFILE_IMAGE_PREFIX}/{account_id}-{millis}.jpg"
