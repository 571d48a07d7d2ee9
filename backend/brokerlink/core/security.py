from cryptography.fernet import Fernet, InvalidToken
from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.argon2 import Argon2Hasher

from brokerlink.core.config import Settings

# Argon2id is memory-hard
password_hasher = PasswordHash((Argon2Hasher(),))


class DecryptionError(Exception):
    """Stored ciphertext could not be authenticated with the current key."""


class EncryptionManager:
    """Handles encryption/decryption of sensitive data"""

    def __init__(self, key):
        if not key:
            raise RuntimeError("FERNET_KEY is missing in environment variables")
        try:
            if isinstance(key, str):
                key = key.encode()
            self.cipher = Fernet(key)
        except Exception as e:
            raise RuntimeError("Invalid FERNET_KEY format") from e

    @classmethod
    def from_settings(cls, settings: Settings) -> "EncryptionManager":
        return cls(settings.FERNET_KEY)

    def encrypt_credentials(self, plaintext: str) -> str:
        """Encrypt sensitive credentials"""
        return self.cipher.encrypt(plaintext.encode()).decode()

    def decrypt_credentials(self, encrypted: str) -> str:
        """Decrypt sensitive credentials"""
        try:
            return self.cipher.decrypt(encrypted.encode()).decode()
        except InvalidToken as e:
            raise DecryptionError("Stored value was encrypted with a different key") from e

    def hash_password(self, password: str) -> str:
        """Hash password using argon2"""
        return password_hasher.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify password against hash"""
        try:
            return password_hasher.verify(plain_password, hashed_password)
        except UnknownHashError:
            # Unrecognized or corrupt hash
            return False


def generate_key() -> str:
    return Fernet.generate_key().decode()
