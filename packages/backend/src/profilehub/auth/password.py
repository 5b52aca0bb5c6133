"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt generates a random salt
on every call and embeds it (together with the work factor) in the hash,
so the stored string is all that is needed to verify later.
The work factor comes from configuration (default 10).
"""

import bcrypt

DEFAULT_ROUNDS = 10


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    Learn: hashes start with "$2b$<rounds>$". Passwords are truncated
    to 72 bytes (bcrypt's limit) so long passphrases still hash instead
    of raising.
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash.

    A malformed stored hash counts as a mismatch rather than an error.
    """
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False
