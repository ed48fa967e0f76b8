"""
Password policy and hashing.

Hashing is bcrypt with a configurable work factor. Both hashing and
checking are CPU-bound, so the async helpers push them to a worker thread
and the event loop keeps serving other requests.
"""

import asyncio
import re

import bcrypt

SPECIAL_CHARACTERS = "@$!%*?&#"
MIN_PASSWORD_LENGTH = 8

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
_BCRYPT_MAX_BYTES = 72

_PASSWORD_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (
        re.compile(f"[{re.escape(SPECIAL_CHARACTERS)}]"),
        f"Password must contain at least one special character ({SPECIAL_CHARACTERS})",
    ),
)


def password_violations(password: str) -> list[str]:
    """
    Check a password against the composite policy.

    Returns:
        Every violated rule, in a fixed order. Empty when the password is
        acceptable.
    """
    violations = []
    if len(password) < MIN_PASSWORD_LENGTH:
        violations.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            violations.append(message)
    return violations


def _to_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """One-way bcrypt hashing with a fixed work factor."""

    def __init__(self, rounds: int = 10):
        self._rounds = rounds
        # Compared against when the email is unknown so both login failure
        # paths cost one bcrypt check
        self._dummy_hash = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds)).decode("utf-8")

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(_to_bytes(password), bcrypt.gensalt(self._rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_to_bytes(password), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False

    async def hash_async(self, password: str) -> str:
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.verify, password, password_hash)

    async def burn_verify_async(self, password: str) -> None:
        """Spend the same effort as a real check when there is no hash to check against."""
        await asyncio.to_thread(self.verify, password, self._dummy_hash)
