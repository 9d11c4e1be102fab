"""Password Hashing — argon2 via passlib, the only place credentials are transformed.

Invariants:
    - Plain passwords never reach the ORM; stores receive password_hash only
    - verify() never raises on a malformed hash, it returns False
"""

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

_pwd = CryptContext(schemes=["argon2"], deprecated="auto")


class PasswordHasher:
    def hash(self, plain: str) -> str:
        return _pwd.hash(plain)

    def verify(self, plain: str, hashed: str) -> bool:
        try:
            return _pwd.verify(plain, hashed)
        except (UnknownHashError, ValueError):
            return False
