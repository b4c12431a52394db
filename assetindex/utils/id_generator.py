"""ID generation utilities."""

import random
import re
import string
import time

# Shape accepted for ids coming from callers (folder ids, tag ids, ...)
ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix.

    Format: {prefix}_{timestamp_base36}{random_8chars}
    Example: folder_m1a2b3c4d5e6f7
    """
    timestamp = int(time.time() * 1000)
    timestamp_b36 = _to_base36(timestamp)
    random_part = "".join(random.choices(string.ascii_lowercase + string.digits, k=8))

    if prefix:
        return f"{prefix}_{timestamp_b36}{random_part}"
    return f"{timestamp_b36}{random_part}"


def is_valid_id(value: object) -> bool:
    """True if value looks like an id we could have generated."""
    return isinstance(value, str) and bool(ID_PATTERN.match(value))


def _to_base36(num: int) -> str:
    """Convert integer to base36 string."""
    chars = string.digits + string.ascii_lowercase
    if num == 0:
        return "0"

    result = []
    while num:
        result.append(chars[num % 36])
        num //= 36

    return "".join(reversed(result))
