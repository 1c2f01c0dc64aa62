"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error. Direct bcrypt usage is simpler and has no
compatibility shim.

The work factor is fixed per process (Settings.bcrypt_rounds) and embedded in
every hash, so verify() always uses the cost the hash was created with.

bcrypt only looks at the first 72 bytes of a password, and newer releases
refuse longer input outright. Both api/models.py and AuthService.register()
check password_too_long() so hash() never sees a longer value.
"""

from __future__ import annotations

import bcrypt

# bcrypt ignores (and 5.x rejects) anything past 72 bytes.
MAX_PASSWORD_BYTES = 72


def password_too_long(plain: str) -> bool:
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


class PasswordHasher:
    """Salted, adaptive one-way hashing of plaintext passwords.

    Instances hold no mutable state; one hasher is shared by every request
    thread without locking.
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the plaintext, salt and cost embedded."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext reproduces the hash.

        Malformed hashes (or input bcrypt refuses) return False rather than
        raising -- the caller treats every failure as "wrong password".
        """
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False
