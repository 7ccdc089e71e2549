"""Centralized password hashing configuration.

All modules requiring password hashing import from here so every account
is hashed with the same Argon2id parameters.
"""

from argon2 import PasswordHasher
from argon2 import exceptions as argon_exc

# Argon2id parameters
# - Memory: 64 MB (65536 KB)
# - Iterations (time_cost): 3
# - Parallelism: 4
PASSWORD_HASHER = PasswordHasher(
    time_cost=3,           # Number of iterations
    memory_cost=65536,     # 64 MB in KB
    parallelism=4,         # Parallel threads
    hash_len=32,           # Output hash length in bytes
    salt_len=16,           # Salt length in bytes
)


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return PASSWORD_HASHER.hash(password)


def verify_password(hash: str, password: str) -> bool:
    """Verify a password against its hash.

    Returns True if valid, False on a mismatch or a malformed hash.
    """
    try:
        return PASSWORD_HASHER.verify(hash, password)
    except (argon_exc.VerifyMismatchError, argon_exc.InvalidHashError, argon_exc.VerificationError):
        return False

