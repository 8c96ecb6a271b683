"""Cryptographic helpers."""

from .encryption import EnvelopeCipher

__all__ = ["EnvelopeCipher"]
