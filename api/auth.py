"""
Password hashing for user registration and login.
"""

import asyncio
from typing import Optional

import bcrypt
import structlog

from api.config import config

logger = structlog.get_logger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


def _encode_password(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


class PasswordHasher:
    """Salted, cost-configurable one-way hashing of passwords with bcrypt."""

    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds if rounds is not None else config.bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """
        Hash a plaintext password.

        Args:
            password: Plaintext password

        Returns:
            bcrypt hash as a string, with the salt and cost embedded
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode_password(password), salt).decode("utf-8")

    def verify_password(self, password: str, hashed_password: str) -> bool:
        """
        Check a plaintext password against a stored hash.

        Args:
            password: Plaintext password supplied by the client
            hashed_password: Hash previously produced by hash_password

        Returns:
            True if the password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(_encode_password(password), hashed_password.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            logger.warning("Stored password hash is malformed")
            return False

    async def hash_password_async(self, password: str) -> str:
        """Hash a password without blocking the event loop."""
        return await asyncio.to_thread(self.hash_password, password)

    async def verify_password_async(self, password: str, hashed_password: str) -> bool:
        """Verify a password without blocking the event loop."""
        return await asyncio.to_thread(self.verify_password, password, hashed_password)
