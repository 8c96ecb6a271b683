"""AES-GCM envelope encryption helper."""

from __future__ import annotations

import os
from dataclasses import dataclass

from cryptography.hazmat.primitives.ciphers.aead import AESGCM


@dataclass
class EnvelopeCipher:
    """Authenticated encryption for secrets kept on account records."""

    key: bytes

    NONCE_SIZE = 12

    def encrypt(self, plaintext: bytes, associated_data: bytes | None = None) -> bytes:
        nonce = os.urandom(self.NONCE_SIZE)
        return nonce + AESGCM(self.key).encrypt(nonce, plaintext, associated_data)

    def decrypt(self, payload: bytes, associated_data: bytes | None = None) -> bytes:
        nonce, ciphertext = payload[: self.NONCE_SIZE], payload[self.NONCE_SIZE :]
        return AESGCM(self.key).decrypt(nonce, ciphertext, associated_data)

    def encrypt_text(self, value: str, *, context: str) -> bytes:
        """Encrypt ``value`` bound to ``context`` (usually the record key)."""
        return self.encrypt(value.encode(), associated_data=context.encode())

    def decrypt_text(self, payload: bytes, *, context: str) -> str:
        return self.decrypt(payload, associated_data=context.encode()).decode()
