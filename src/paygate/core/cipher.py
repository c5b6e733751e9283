import os
from collections.abc import Iterable, Mapping
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import BaseModel, ConfigDict

from paygate.core.errors import DecryptionFailed, InternalError
from paygate.shared.config import Security
from paygate.shared.logger import Logger

logger = Logger(__name__).get_logger()

KEY_LENGTH = 24  # AES-192
IV_LENGTH = 16  # AES block size
ENVELOPE_SEPARATOR = ":"

# Fixed, non-secret salt kept so that existing envelopes stay readable.
# Replacing it invalidates every stored ciphertext.
KDF_SALT = b"salt"


class ScryptParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    n: int = 16384
    r: int = 8
    p: int = 1


class FieldCipher:
    """Encrypts single string attributes into ``hex(iv):hex(ciphertext)``.

    The key is derived from the server secret with scrypt on every call, so
    both directions are CPU-bound and block the calling thread.
    """

    def __init__(self, secret: str, params: ScryptParams | None = None):
        if not secret:
            raise ValueError("FieldCipher requires a non-empty secret")
        self.__secret = secret.encode("utf-8")
        self.params = params or ScryptParams()

    @classmethod
    def from_config(cls, security: Security) -> "FieldCipher":
        return cls(
            security.encryption_key,
            ScryptParams(n=security.scrypt_n, r=security.scrypt_r, p=security.scrypt_p),
        )

    def _derive_key(self) -> bytes:
        kdf = Scrypt(
            salt=KDF_SALT,
            length=KEY_LENGTH,
            n=self.params.n,
            r=self.params.r,
            p=self.params.p,
        )
        return kdf.derive(self.__secret)

    def encrypt(self, plaintext: Any) -> Any:
        """Return an envelope for ``plaintext``; non-strings and "" pass through."""
        if not plaintext or not isinstance(plaintext, str):
            return plaintext

        try:
            key = self._derive_key()
            iv = os.urandom(IV_LENGTH)

            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

            encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except Exception as e:
            logger.error("Encryption failed: %s", e)
            raise InternalError() from e

        return iv.hex() + ENVELOPE_SEPARATOR + ciphertext.hex()

    def decrypt(self, envelope: Any) -> Any:
        """
        Reverse ``encrypt``.
        Values without a separator are treated as legacy plaintext and returned
        as is. Raises DecryptionFailed on bad hex, bad padding or a wrong key.
        """
        if not envelope or not isinstance(envelope, str):
            return envelope

        if ENVELOPE_SEPARATOR not in envelope:
            return envelope

        iv_hex, _, ciphertext_hex = envelope.partition(ENVELOPE_SEPARATOR)

        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
            key = self._derive_key()

            decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()

            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except ValueError as e:
            logger.warning("Decryption failed: %s", e)
            raise DecryptionFailed() from e

    def encrypt_fields(
        self, record: Mapping[str, Any], names: Iterable[str]
    ) -> dict[str, Any]:
        encrypted = dict(record)
        for name in names:
            if name in encrypted:
                encrypted[name] = self.encrypt(encrypted[name])
        return encrypted

    def decrypt_fields(
        self, record: Mapping[str, Any], names: Iterable[str]
    ) -> tuple[dict[str, Any], list[str]]:
        """Decrypt each named field independently.

        A field that fails is set to None and reported in the returned list;
        the remaining fields are still decrypted.
        """
        decrypted = dict(record)
        undecryptable: list[str] = []

        for name in names:
            if name not in decrypted:
                continue
            try:
                decrypted[name] = self.decrypt(decrypted[name])
            except DecryptionFailed:
                logger.warning("Field %s could not be decrypted", name)
                decrypted[name] = None
                undecryptable.append(name)

        return decrypted, undecryptable
