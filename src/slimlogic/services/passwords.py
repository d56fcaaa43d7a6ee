"""Password hashing helpers."""

from passlib.hash import pbkdf2_sha256


def hash_password(password: str) -> str:
    """Return a salted PBKDF2-SHA256 hash for storage."""
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Return True when the password matches the stored hash."""
    try:
        return pbkdf2_sha256.verify(password, password_hash)
    except ValueError:
        return False
