"""
Object key validation.
"""

from shared.errors import ValidationError

MAX_KEY_LENGTH = 1024


def validate_key(key: str) -> str:
    """Return ``key`` unchanged if it is usable in both stores, else raise ValidationError."""
    if not key:
        raise ValidationError("Object key is required")

    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(
            "Object key too long",
            {"max_length": MAX_KEY_LENGTH, "length": len(key)},
        )

    if "\\" in key or any(ord(char) < 0x20 or ord(char) == 0x7F for char in key):
        raise ValidationError("Object key contains forbidden characters", {"key": key})

    for segment in key.split("/"):
        if segment in ("", ".", ".."):
            raise ValidationError("Object key contains an invalid path segment", {"key": key})

    return key
