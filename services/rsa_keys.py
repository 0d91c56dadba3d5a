"""
RSA key material loading.

JDPay hands merchants keys as bare base64 DER strings; PEM text is
accepted as well.
"""

import base64
import binascii

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    load_der_private_key,
    load_der_public_key,
    load_pem_private_key,
    load_pem_public_key,
)

PEM_MARKER = '-----BEGIN'


def _der_bytes(material: str) -> bytes:
    compact = ''.join(material.split())
    return base64.b64decode(compact, validate=True)


def load_private_key(material: str) -> rsa.RSAPrivateKey:
    """
    Load an RSA private key from PEM or base64 DER (PKCS#8 or PKCS#1).

    Raises:
        ValueError: If the material is not an unencrypted RSA private key
    """
    try:
        if PEM_MARKER in material:
            key = load_pem_private_key(material.encode('ascii'), password=None)
        else:
            key = load_der_private_key(_der_bytes(material), password=None)
    except (binascii.Error, TypeError, ValueError, UnsupportedAlgorithm) as e:
        raise ValueError(f"cannot load RSA private key: {e}") from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise ValueError("private key is not an RSA key")
    return key


def load_public_key(material: str) -> rsa.RSAPublicKey:
    """
    Load an RSA public key from PEM or base64 DER (SubjectPublicKeyInfo).

    Raises:
        ValueError: If the material is not an RSA public key
    """
    try:
        if PEM_MARKER in material:
            key = load_pem_public_key(material.encode('ascii'))
        else:
            key = load_der_public_key(_der_bytes(material))
    except (binascii.Error, TypeError, ValueError, UnsupportedAlgorithm) as e:
        raise ValueError(f"cannot load RSA public key: {e}") from e

    if not isinstance(key, rsa.RSAPublicKey):
        raise ValueError("public key is not an RSA key")
    return key
