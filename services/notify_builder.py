"""
Gateway-side notification construction.

Builds signed and encrypted callbacks the way the gateway sends them, for
simulating notifications against a merchant endpoint and for tests.
"""

from typing import Any, Dict, Mapping, Optional

from cryptography.hazmat.primitives.asymmetric import rsa
from lxml import etree

from .canonical import DEFAULT_XML_DECLARATION, SIGN
from .des_cipher import TripleDesCipher
from .result_parser import ENCRYPT
from .signature import RecoverableSigner, RsaSigner

ROOT_TAG = 'jdpay'
ENVELOPE_FIELDS = ('version', 'merchant', 'result')


def fields_to_element(tag: str, fields: Mapping[str, Any]) -> etree._Element:
    """Build an element whose children mirror the given fields."""
    element = etree.Element(tag)
    for name, value in fields.items():
        if isinstance(value, Mapping):
            element.append(fields_to_element(name, value))
        else:
            child = etree.SubElement(element, name)
            # empty text serializes self-closed, as it does after parsing
            if value != '':
                child.text = str(value)
    return element


class NotifyBuilder:
    """
    Builds gateway notifications.

    Args:
        gateway_key: Gateway RSA private key; the merchant verifies with its public half
        cipher: Cipher sharing the merchant's DES key
    """

    def __init__(self, gateway_key: rsa.RSAPrivateKey, cipher: TripleDesCipher):
        self.cipher = cipher
        self.form_signer = RsaSigner(gateway_key)
        self.xml_signer = RecoverableSigner(gateway_key)

    def form(self, fields: Mapping[str, str]) -> Dict[str, str]:
        """Sign plaintext fields, then encrypt every value except sign."""
        parameters = {name: value for name, value in fields.items() if value}
        sign = self.form_signer.sign(parameters)

        encrypted = {name: self.cipher.encrypt(value) for name, value in parameters.items()}
        encrypted[SIGN] = sign
        return encrypted

    def inner_document(
        self,
        fields: Mapping[str, Any],
        header: str = DEFAULT_XML_DECLARATION
    ) -> str:
        """Signed inner document text, before encryption."""
        root = fields_to_element(ROOT_TAG, fields)
        sign = self.xml_signer.sign(root, header)
        etree.SubElement(root, SIGN).text = sign
        return DEFAULT_XML_DECLARATION + etree.tostring(root, encoding='unicode')

    def xml(
        self,
        fields: Mapping[str, Any],
        header: str = DEFAULT_XML_DECLARATION,
        inner_document: Optional[str] = None
    ) -> str:
        """
        Outer XML notification wrapping the signed, encrypted inner document.

        Args:
            fields: Inner document fields; version, merchant and result are
                also repeated in the outer envelope
            header: Declaration the outer document is sent with
            inner_document: Pre-built inner document to wrap instead
        """
        if inner_document is None:
            inner_document = self.inner_document(fields, header)

        outer = {name: fields[name] for name in ENVELOPE_FIELDS if name in fields}
        outer[ENCRYPT] = self.cipher.encrypt_envelope(inner_document)
        return header + etree.tostring(fields_to_element(ROOT_TAG, outer), encoding='unicode')
