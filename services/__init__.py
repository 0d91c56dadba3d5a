"""Services module for the JDPay notify verifier."""

from .des_cipher import TripleDesCipher
from .canonical import SignContentCanonicalizer, XmlCanonicalizer
from .signature import RecoverCompareVerifier, RsaSignatureVerifier
from .notify_client import NotifyClient

__all__ = [
    'TripleDesCipher',
    'SignContentCanonicalizer',
    'XmlCanonicalizer',
    'RsaSignatureVerifier',
    'RecoverCompareVerifier',
    'NotifyClient'
]
