"""Symmetric encryption of message bodies at rest."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.config import get_settings

logger = logging.getLogger(__name__)

NONCE_SIZE = 12


@dataclass(frozen=True, slots=True)
class EncryptedPayload:
    """Hex encoded nonce and ciphertext as stored on a message row."""

    iv: str
    ciphertext: str


class MessageCipher:
    """AES-256-GCM wrapper keyed by a single process-wide secret.

    Every call to :meth:`encrypt` draws a fresh random nonce, so two encryptions
    of the same plaintext never produce the same ciphertext.
    """

    def __init__(self, key: bytes) -> None:
        if len(key) != 32:
            raise ValueError("Message encryption key must be 32 bytes")
        self._aead = AESGCM(key)

    @classmethod
    def from_hex(cls, hex_key: str) -> "MessageCipher":
        return cls(bytes.fromhex(hex_key))

    def encrypt(self, plaintext: str) -> EncryptedPayload:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return EncryptedPayload(iv=nonce.hex(), ciphertext=ciphertext.hex())

    def decrypt(self, ciphertext: str, iv: str) -> str | None:
        """Return the plaintext, or ``None`` when the payload cannot be opened."""

        try:
            nonce = bytes.fromhex(iv)
            data = bytes.fromhex(ciphertext)
            plaintext = self._aead.decrypt(nonce, data, None)
            return plaintext.decode("utf-8")
        except (ValueError, InvalidTag, UnicodeDecodeError):
            logger.warning("Failed to decrypt message payload (iv=%s)", iv[:24])
            return None


@lru_cache
def get_cipher() -> MessageCipher:
    return MessageCipher.from_hex(get_settings().message_encryption_key)


__all__ = ["EncryptedPayload", "MessageCipher", "get_cipher", "NONCE_SIZE"]
