"""Symmetric encryption for the token strings kept in the credential file."""

from __future__ import annotations

import base64
import hashlib
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken

from nowplaying.models.credential import CredentialRecord


class TokenCipherService:
    """Encrypt and decrypt credential records using a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a plaintext string and return the ciphertext."""
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        return token.decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a ciphertext string and return the plaintext."""
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")

    def seal(self, record: CredentialRecord) -> Dict[str, str]:
        """Serialize a record with both tokens encrypted, keeping the file keys."""
        return {
            "accessToken": self.encrypt(record.access_token),
            "refreshToken": self.encrypt(record.refresh_token),
        }

    def unseal(self, payload: Dict[str, Any]) -> CredentialRecord:
        """Inverse of :meth:`seal`; raises ``ValueError`` on tampered values."""
        return CredentialRecord(
            access_token=self.decrypt(payload["accessToken"]),
            refresh_token=self.decrypt(payload["refreshToken"]),
        )


__all__ = ["TokenCipherService"]
