"""
Notification signature verification.

Two strategies are used by the gateway:

- Form notifications carry a standard RSA PKCS#1 v1.5 signature over the
  canonical key=value string.
- XML notifications carry a signature that is the raw private-key RSA
  operation over a hex SHA-256 digest of the inner document. It is checked
  by recovering the embedded digest with the public key and comparing it
  with a freshly computed one.

Verifiers never raise: any malformed input counts as a failed check.
The signers produce signatures the verifiers accept and are used to build
callbacks for testing and simulation.
"""

import base64
import hashlib
import hmac
import logging
from typing import Callable, Mapping, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from lxml import etree

from .canonical import SIGN, SignContentCanonicalizer, XmlCanonicalizer
from .encoding import b64decode_strict

logger = logging.getLogger(__name__)

Digest = Callable[[str], str]


def sha256_hex(content: str) -> str:
    """Lowercase hex SHA-256 of UTF-8 content."""
    return hashlib.sha256(content.encode('utf-8')).hexdigest()


class RsaSignatureVerifier:
    """Standard RSA signature check for form notifications."""

    def __init__(
        self,
        public_key: rsa.RSAPublicKey,
        canonicalizer: Optional[SignContentCanonicalizer] = None,
        hash_algorithm: Optional[hashes.HashAlgorithm] = None
    ):
        self.public_key = public_key
        self.canonicalizer = canonicalizer or SignContentCanonicalizer()
        self.hash_algorithm = hash_algorithm or hashes.SHA256()

    def verify(self, parameters: Mapping[str, str]) -> bool:
        """
        Check the sign field against the remaining parameters.

        Args:
            parameters: Decrypted parameters including 'sign'

        Returns:
            True only if the signature is authentic
        """
        sign = parameters.get(SIGN)
        if not sign:
            logger.warning("Form notification has no signature")
            return False

        content = self.canonicalizer.canonicalize(parameters)
        logger.debug(f"Form sign content: {content}")

        try:
            self.public_key.verify(
                b64decode_strict(sign),
                content.encode('utf-8'),
                padding.PKCS1v15(),
                self.hash_algorithm
            )
            return True
        except InvalidSignature:
            logger.warning("Form notification signature does not match content")
            return False
        except Exception as e:
            logger.warning(f"Form notification signature check failed: {e}")
            return False


class RecoverCompareVerifier:
    """
    Digest-recovery check for XML notifications.

    The recovered digest must equal the recomputed one byte for byte;
    length or case differences fail.
    """

    def __init__(
        self,
        public_key: rsa.RSAPublicKey,
        canonicalizer: Optional[XmlCanonicalizer] = None,
        digest: Digest = sha256_hex
    ):
        self.public_key = public_key
        self.canonicalizer = canonicalizer or XmlCanonicalizer()
        self.digest = digest

    def verify(self, root: etree._Element, sign: Optional[str], header: str = '') -> bool:
        """
        Check a decrypted inner document against its sign value.

        Args:
            root: Root element of the decrypted document
            sign: Base64 signature taken from the document's sign node
            header: Header text of the document as received

        Returns:
            True only if the recovered digest matches
        """
        if not sign:
            logger.warning("XML notification has no signature")
            return False

        content = self.canonicalizer.canonicalize(root, header)
        expected = self.digest(content)
        logger.debug(f"XML sign content digest: {expected}")

        try:
            recovered = self.public_key.recover_data_from_signature(
                b64decode_strict(sign),
                padding.PKCS1v15(),
                None
            )
        except InvalidSignature:
            logger.warning("XML notification signature could not be recovered")
            return False
        except Exception as e:
            logger.warning(f"XML notification signature check failed: {e}")
            return False

        if not hmac.compare_digest(recovered, expected.encode('utf-8')):
            logger.warning("XML notification digest does not match content")
            return False
        return True


class RsaSigner:
    """Produces form signatures accepted by RsaSignatureVerifier."""

    def __init__(
        self,
        private_key: rsa.RSAPrivateKey,
        canonicalizer: Optional[SignContentCanonicalizer] = None,
        hash_algorithm: Optional[hashes.HashAlgorithm] = None
    ):
        self.private_key = private_key
        self.canonicalizer = canonicalizer or SignContentCanonicalizer()
        self.hash_algorithm = hash_algorithm or hashes.SHA256()

    def sign(self, parameters: Mapping[str, str]) -> str:
        content = self.canonicalizer.canonicalize(parameters)
        signature = self.private_key.sign(
            content.encode('utf-8'),
            padding.PKCS1v15(),
            self.hash_algorithm
        )
        return base64.b64encode(signature).decode('ascii')


class RecoverableSigner:
    """Produces XML signatures accepted by RecoverCompareVerifier."""

    def __init__(
        self,
        private_key: rsa.RSAPrivateKey,
        canonicalizer: Optional[XmlCanonicalizer] = None,
        digest: Digest = sha256_hex
    ):
        self.private_key = private_key
        self.canonicalizer = canonicalizer or XmlCanonicalizer()
        self.digest = digest

    def sign(self, root: etree._Element, header: str = '') -> str:
        content = self.canonicalizer.canonicalize(root, header)
        signature = self._private_operation(self.digest(content).encode('utf-8'))
        return base64.b64encode(signature).decode('ascii')

    def _private_operation(self, data: bytes) -> bytes:
        """RSA private-key operation over PKCS#1 type-1 padded data."""
        numbers = self.private_key.private_numbers()
        modulus = numbers.public_numbers.n
        size = (modulus.bit_length() + 7) // 8
        if len(data) > size - 11:
            raise ValueError("digest too long for RSA key size")

        block = b'\x00\x01' + b'\xff' * (size - 3 - len(data)) + b'\x00' + data
        value = pow(int.from_bytes(block, 'big'), numbers.d, modulus)
        return value.to_bytes(size, 'big')
