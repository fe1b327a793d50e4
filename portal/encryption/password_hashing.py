# portal/encryption/password_hashing.py

import secrets
import string
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError, HashingError

# Password hashing and verification using Argon2id

MIN_PASSWORD_LENGTH = 8


class PasswordHashingService:
    def __init__(self, time_cost=3, memory_cost=65536, parallelism=4):
        self.ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
        )

    def hash_password(self, password: str) -> str:
        if not self.is_acceptable_password(password):
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        try:
            return self.ph.hash(password)
        except HashingError as e:
            raise ValueError(f"Password hashing failed: {str(e)}")

    def verify_password(self, password: str, hash_value: str) -> bool:
        if not isinstance(password, str) or not hash_value:
            return False
        try:
            return self.ph.verify(hash_value, password)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hash_value: str) -> bool:
        return self.ph.check_needs_rehash(hash_value)

    def is_acceptable_password(self, password) -> bool:
        return (
            isinstance(password, str)
            and len(password) >= MIN_PASSWORD_LENGTH
            and bool(password.strip())
        )

    def generate_secure_password(self, length=16) -> str:
        if length < 12:
            length = 12
        charset = string.ascii_letters + string.digits + "!@#$%^&*(),.?"
        while True:
            password = ''.join(secrets.choice(charset) for _ in range(length))
            if (any(c.isupper() for c in password) and any(c.islower() for c in password)
                    and any(c.isdigit() for c in password)):
                return password
