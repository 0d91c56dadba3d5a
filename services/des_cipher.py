"""
Field encryption for JDPay notifications.

The gateway encrypts field values with Triple-DES in ECB mode using the
merchant's pre-shared key. Each plaintext is framed as a 4-byte big-endian
byte length, the UTF-8 data, then zero padding up to the block size.
"""

import base64
import binascii
import struct
from typing import Optional

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from .encoding import b64decode_strict
from .exceptions import DecryptionFailed

BLOCK_SIZE = 8
LENGTH_PREFIX_SIZE = 4
TEXT_ENCODINGS = ('base64', 'hex')


class TripleDesCipher:
    """
    Deterministic Triple-DES/ECB cipher over text field values.

    Holds no per-call state, so a single instance is shared across
    concurrent notifications.
    """

    def __init__(self, key: bytes, encoding: str = 'base64'):
        """
        Args:
            key: 8, 16 or 24 byte DES key
            encoding: Text encoding of ciphertexts on the wire ('base64' or 'hex')
        """
        if len(key) not in (8, 16, 24):
            raise ValueError(f"Triple-DES key must be 8, 16 or 24 bytes, got {len(key)}")
        if encoding not in TEXT_ENCODINGS:
            raise ValueError(f"Unsupported ciphertext encoding: {encoding}")

        self.encoding = encoding
        self._cipher = Cipher(TripleDES(key), modes.ECB())

    @classmethod
    def from_base64_key(cls, des_key: str, encoding: str = 'base64') -> 'TripleDesCipher':
        """Create a cipher from the base64 key string found in merchant config."""
        return cls(base64.b64decode(des_key, validate=True), encoding)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a field value, returning encoded ciphertext text."""
        data = plaintext.encode('utf-8')
        framed = struct.pack('>I', len(data)) + data
        remainder = len(framed) % BLOCK_SIZE
        if remainder:
            framed += b'\x00' * (BLOCK_SIZE - remainder)

        encryptor = self._cipher.encryptor()
        ciphertext = encryptor.update(framed) + encryptor.finalize()
        return self._encode(ciphertext)

    def decrypt(self, ciphertext: str, field: Optional[str] = None) -> str:
        """
        Decrypt an encoded field value.

        Args:
            ciphertext: Encoded ciphertext text
            field: Field name reported in errors

        Returns:
            Plaintext value

        Raises:
            DecryptionFailed: If the encoding, block alignment, framing or
                padding is malformed
        """
        try:
            raw = self._decode(ciphertext)
        except (binascii.Error, ValueError):
            raise DecryptionFailed(f"ciphertext is not valid {self.encoding}", field)

        if not raw or len(raw) % BLOCK_SIZE:
            raise DecryptionFailed("ciphertext length is not a multiple of the block size", field)

        decryptor = self._cipher.decryptor()
        framed = decryptor.update(raw) + decryptor.finalize()

        (length,) = struct.unpack('>I', framed[:LENGTH_PREFIX_SIZE])
        end = LENGTH_PREFIX_SIZE + length
        if end > len(framed):
            raise DecryptionFailed("declared length exceeds ciphertext", field)

        padding = framed[end:]
        if len(padding) >= BLOCK_SIZE or any(padding):
            raise DecryptionFailed("invalid padding", field)

        try:
            return framed[LENGTH_PREFIX_SIZE:end].decode('utf-8')
        except UnicodeDecodeError:
            raise DecryptionFailed("plaintext is not valid UTF-8", field)

    def encrypt_envelope(self, document: str) -> str:
        """Wrap a whole document as the base64 'encrypt' envelope."""
        inner = self.encrypt(document)
        return base64.b64encode(inner.encode('utf-8')).decode('ascii')

    def decrypt_envelope(self, envelope: str) -> str:
        """
        Unwrap an 'encrypt' envelope into the secondary document.

        The outer base64 layer is a transport artifact around the encoded
        ciphertext text.
        """
        try:
            inner = b64decode_strict(envelope.strip()).decode('utf-8')
        except (binascii.Error, ValueError):
            raise DecryptionFailed("envelope is not valid base64 text", 'encrypt')
        return self.decrypt(inner, field='encrypt')

    def _encode(self, raw: bytes) -> str:
        if self.encoding == 'hex':
            return raw.hex()
        return base64.b64encode(raw).decode('ascii')

    def _decode(self, text: str) -> bytes:
        if self.encoding == 'hex':
            raw = bytes.fromhex(text)
            if text not in (raw.hex(), raw.hex().upper()):
                raise ValueError("non-canonical hex")
            return raw
        return b64decode_strict(text)
