from __future__ import annotations

import hashlib
import os
import re

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..core.constants import IV_LENGTH
from ..core.exceptions import FormatError, KeyMismatchError, LengthError

_HEX = re.compile(r"[0-9a-fA-F]+")


class CredentialVault:
    """AES-256-CBC protection for the portal secret at rest.

    Tokens are ``"<iv hex>:<ciphertext hex>"`` so decryption needs nothing but
    the token and the passphrase. The key is SHA-256 of the passphrase; there
    is no key versioning, so a new passphrase makes existing tokens fail with
    ``KeyMismatchError``.
    """

    def __init__(self, passphrase: str):
        if not passphrase:
            raise ValueError("ENCRYPTION_KEY is not configured")
        self._key = hashlib.sha256(passphrase.encode("utf-8")).digest()

    def encrypt(self, secret: str) -> str:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        data = padder.update(secret.encode("utf-8")) + padder.finalize()

        encryptor = self._cipher(iv).encryptor()
        ciphertext = encryptor.update(data) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        parts = token.split(":") if isinstance(token, str) else []
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise FormatError("Invalid encrypted format - expected iv:ciphertext")

        if not all(_HEX.fullmatch(part) for part in parts):
            raise FormatError("Invalid encrypted format - parts must be hex encoded")
        try:
            iv = bytes.fromhex(parts[0])
            ciphertext = bytes.fromhex(parts[1])
        except ValueError:
            # odd number of hex digits
            raise FormatError("Invalid encrypted format - parts must be hex encoded")

        if len(iv) != IV_LENGTH:
            raise LengthError(f"Invalid IV length: expected {IV_LENGTH} bytes, got {len(iv)}")

        try:
            decryptor = self._cipher(iv).decryptor()
            data = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plain = unpadder.update(data) + unpadder.finalize()
            return plain.decode("utf-8")
        except ValueError:
            # bad padding, partial block, or non-UTF-8 plaintext
            raise KeyMismatchError("Unable to decrypt portal secret: wrong key or corrupted data")

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(iv))
