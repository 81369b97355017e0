"""Password hashing collaborator.

Hashes are Argon2id over the plaintext, salted with a value derived from the
username and the account's member-since timestamp. The same inputs always
produce the same hash, so no separate salt column is stored.
"""

import hashlib
import hmac

from argon2.low_level import Type, hash_secret

from sessionauth.core.config import Settings

SALT_LENGTH = 16
HASH_LENGTH = 32


class PasswordHasher:
    """Deterministic Argon2id hasher keyed by username + member-since."""

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ):
        self.time_cost = time_cost
        self.memory_cost = memory_cost
        self.parallelism = parallelism

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(
            time_cost=settings.password_hash_time_cost,
            memory_cost=settings.password_hash_memory_cost,
            parallelism=settings.password_hash_parallelism,
        )

    @staticmethod
    def _salt(username: str, member_since_iso: str) -> bytes:
        return hashlib.sha256(f"{username}{member_since_iso}".encode()).digest()[:SALT_LENGTH]

    def hash(self, username: str, member_since_iso: str, plaintext: str) -> str:
        encoded = hash_secret(
            plaintext.encode("utf-8"),
            self._salt(username, member_since_iso),
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
            hash_len=HASH_LENGTH,
            type=Type.ID,
        )
        return encoded.decode("ascii")

    def verify(
        self, username: str, member_since_iso: str, plaintext: str, stored_hash: str
    ) -> bool:
        """Recompute and compare in constant time."""
        candidate = self.hash(username, member_since_iso, plaintext)
        return hmac.compare_digest(candidate.encode("ascii"), stored_hash.encode("ascii"))
