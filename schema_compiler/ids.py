"""
Random identifiers in four size classes.
"""

import secrets
import string

ALPHABET = string.ascii_letters + string.digits

ID_SIZES = {
    "sm": 8,
    "md": 16,
    "lg": 24,
    "max": 32,
}


def generate(size: str = "max") -> str:
    """Identifier for a size class name; unknown names use ``max``."""
    length = ID_SIZES.get(str(size).lower(), ID_SIZES["max"])
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
