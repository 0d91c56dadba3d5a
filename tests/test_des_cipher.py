"""
Unit tests for the Triple-DES field cipher.

Run with: pytest tests/test_des_cipher.py -v
"""

import base64
import struct

import pytest
from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from services.des_cipher import TripleDesCipher
from services.exceptions import DecryptionFailed

from conftest import DES_KEY

KEY = base64.b64decode(DES_KEY)


def raw_encrypt(framed: bytes) -> str:
    """Encrypt pre-framed bytes, bypassing the cipher's own framing."""
    encryptor = Cipher(TripleDES(KEY), modes.ECB()).encryptor()
    return base64.b64encode(encryptor.update(framed) + encryptor.finalize()).decode('ascii')


class TestTripleDesCipher:
    """Tests for TripleDesCipher."""

    @pytest.mark.parametrize('value', [
        '',
        'a',
        'hello',
        '1234',  # frame fills one block exactly
        '20240101120000',
        '京东支付 notify ✓',
        'x' * 1000,
    ])
    def test_round_trip(self, cipher, value):
        """Test decrypt(encrypt(v)) == v."""
        assert cipher.decrypt(cipher.encrypt(value)) == value

    def test_hex_round_trip(self):
        """Test hex-encoded ciphertexts."""
        cipher = TripleDesCipher(KEY, encoding='hex')
        ciphertext = cipher.encrypt('hello')

        assert all(c in '0123456789abcdef' for c in ciphertext)
        assert cipher.decrypt(ciphertext) == 'hello'
        assert cipher.decrypt(ciphertext.upper()) == 'hello'

    def test_encrypt_is_deterministic(self, cipher):
        """Test ECB mode yields the same ciphertext for the same value."""
        assert cipher.encrypt('hello') == cipher.encrypt('hello')

    def test_ciphertext_is_block_aligned(self, cipher):
        """Test framing pads to the 8-byte block size."""
        raw = base64.b64decode(cipher.encrypt('hello'))
        assert len(raw) == 16

    def test_invalid_key_length(self):
        """Test that non-DES key sizes are rejected."""
        with pytest.raises(ValueError, match="8, 16 or 24 bytes"):
            TripleDesCipher(b'short')

    def test_invalid_encoding(self):
        """Test that unknown wire encodings are rejected."""
        with pytest.raises(ValueError, match="Unsupported ciphertext encoding"):
            TripleDesCipher(KEY, encoding='base32')

    def test_decrypt_invalid_base64_reports_field(self, cipher):
        """Test malformed text carries the field name."""
        with pytest.raises(DecryptionFailed) as exc_info:
            cipher.decrypt('not base64!', field='tradeNum')

        assert exc_info.value.field == 'tradeNum'
        assert 'tradeNum' in str(exc_info.value)

    def test_decrypt_non_canonical_base64(self, cipher):
        """Test that base64 with stray trailing bits is rejected."""
        ciphertext = base64.b64encode(b'\x00' * 8).decode('ascii')  # 'AAAAAAAAAAA='
        tampered = ciphertext[:10] + 'B' + ciphertext[11:]

        assert base64.b64decode(tampered) == base64.b64decode(ciphertext)
        with pytest.raises(DecryptionFailed, match="not valid base64"):
            cipher.decrypt(tampered)

    def test_decrypt_unaligned_ciphertext(self, cipher):
        """Test that ciphertext not a multiple of the block size fails."""
        with pytest.raises(DecryptionFailed, match="block size"):
            cipher.decrypt(base64.b64encode(b'\x01' * 7).decode('ascii'))

    def test_decrypt_empty_ciphertext(self, cipher):
        """Test that an empty ciphertext fails."""
        with pytest.raises(DecryptionFailed):
            cipher.decrypt('')

    def test_decrypt_declared_length_too_long(self, cipher):
        """Test that a frame claiming more data than present fails."""
        ciphertext = raw_encrypt(struct.pack('>I', 255) + b'abcd')

        with pytest.raises(DecryptionFailed, match="declared length"):
            cipher.decrypt(ciphertext)

    def test_decrypt_nonzero_padding(self, cipher):
        """Test that non-zero padding bytes fail."""
        ciphertext = raw_encrypt(struct.pack('>I', 2) + b'ok\x01\x02')

        with pytest.raises(DecryptionFailed, match="padding"):
            cipher.decrypt(ciphertext)

    def test_decrypt_tampered_last_block(self, cipher):
        """Test that a corrupted padding block never decrypts."""
        raw = bytearray(base64.b64decode(cipher.encrypt('hello')))
        raw[-1] ^= 0x01

        with pytest.raises(DecryptionFailed):
            cipher.decrypt(base64.b64encode(bytes(raw)).decode('ascii'))

    def test_decrypt_with_wrong_key(self, cipher):
        """Test that another key's ciphertext does not decrypt."""
        other = TripleDesCipher(bytes(range(101, 125)))

        with pytest.raises(DecryptionFailed):
            cipher.decrypt(other.encrypt('hello'))


class TestEnvelope:
    """Tests for whole-document envelopes."""

    def test_envelope_round_trip(self, cipher):
        """Test encrypt_envelope/decrypt_envelope."""
        document = '<?xml version="1.0" encoding="UTF-8"?><jdpay><amount>1</amount></jdpay>'
        envelope = cipher.encrypt_envelope(document)

        assert cipher.decrypt_envelope(envelope) == document

    def test_envelope_is_double_encoded(self, cipher):
        """Test the outer layer decodes to the field ciphertext text."""
        envelope = cipher.encrypt_envelope('<jdpay/>')
        inner = base64.b64decode(envelope).decode('ascii')

        assert cipher.decrypt(inner) == '<jdpay/>'

    def test_envelope_surrounding_whitespace(self, cipher):
        """Test spaces around the envelope text are ignored."""
        envelope = cipher.encrypt_envelope('<jdpay/>')

        assert cipher.decrypt_envelope(f'  {envelope} \t') == '<jdpay/>'

    def test_envelope_invalid_outer_layer(self, cipher):
        """Test that a broken outer layer reports the encrypt field."""
        with pytest.raises(DecryptionFailed) as exc_info:
            cipher.decrypt_envelope('%%%')

        assert exc_info.value.field == 'encrypt'
