# whalemall/security.py
"""Contact-info encryption and identity claims.

``ContactCipher`` wraps Fernet: every token carries its own random IV and an
HMAC, so tampered or truncated values are detected on decrypt. The key is
derived from the configured secret, never stored.
"""
import base64
import hashlib
from dataclasses import dataclass

from cryptography.fernet import Fernet, InvalidToken
from jose import JWTError, jwt

from .errors import CorruptDataError, UnauthorizedError

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def derive_fernet_key(secret: str) -> bytes:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class ContactCipher:
    def __init__(self, secret: str):
        if not secret:
            raise ValueError("encryption secret must not be empty")
        self._fernet = Fernet(derive_fernet_key(secret))

    def encrypt(self, contact_info: str) -> str:
        return self._fernet.encrypt(contact_info.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Return the plaintext for a stored token.

        Raises:
            CorruptDataError: the token is malformed, tampered with, was
                produced under another key, or does not decode as UTF-8.
        """
        if not isinstance(token, str) or not token:
            raise CorruptDataError()
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as e:
            raise CorruptDataError() from e


@dataclass(frozen=True)
class Identity:
    """Verified ``(user_id, role)`` claim for one request."""

    user_id: str
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def decode_identity(token: str, secret: str, algorithm: str = "HS256") -> Identity:
    """Turn a bearer token issued by the identity provider into an Identity."""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")
    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Token missing subject")
    role = payload.get("role", ROLE_USER)
    if role not in (ROLE_USER, ROLE_ADMIN):
        raise UnauthorizedError("Token carries an unknown role")
    return Identity(user_id=str(user_id), role=role)
