"""
JDPay Notify Client.

Verifies asynchronous payment-status callbacks from the JDPay gateway:
decodes the request, decrypts protected fields, checks the signature and
returns a typed result. Every call ends in either a verified result or a
NotifyError; nothing unverified is ever returned.
"""

import binascii
import logging
from typing import Mapping, Optional, Tuple
from urllib.parse import urlencode

from aiohttp import web
from lxml import etree

from config import JDPayConfig
from models.notify import FormNotifyResponse, NotifyResponse, XmlNotifyResponse
from .canonical import SIGN, SignContentCanonicalizer, XmlCanonicalizer
from .des_cipher import TripleDesCipher
from .exceptions import (
    ConfigurationError,
    DecryptionFailed,
    EmptyEncryptedPayload,
    EmptyParameters,
    MissingSignature,
    NotifyError,
    SignatureVerificationFailed,
)
from .payload_decoder import PayloadKind, decode_request
from .result_parser import build_xml_response, parse_document, parse_envelope, parse_parameters
from .rsa_keys import load_private_key, load_public_key
from .signature import RecoverCompareVerifier, RsaSignatureVerifier

logger = logging.getLogger(__name__)


class NotifyClient:
    """
    End-to-end verifier for gateway notifications.

    Form notifications:
    - every field but sign is decrypted individually
    - the sign field is checked with a standard RSA signature verify

    XML notifications:
    - the encrypt envelope is decrypted into an inner document
    - the inner document's sign is checked by digest recovery
    - the original envelope is carried onto the result

    Key material is parsed once here. The instance holds no per-call
    state and is meant to be shared by all concurrent requests.
    """

    def __init__(
        self,
        options: JDPayConfig,
        canonicalizer: Optional[SignContentCanonicalizer] = None,
        xml_canonicalizer: Optional[XmlCanonicalizer] = None,
        cipher: Optional[TripleDesCipher] = None,
        ciphertext_encoding: str = 'base64'
    ):
        """
        Initialize the notify client.

        Args:
            options: Merchant configuration, all fields required
            canonicalizer: Form sign content rule, sorted key=value by default
            xml_canonicalizer: XML sign content rule
            cipher: Field cipher, built from options.des_key if not provided
            ciphertext_encoding: Wire encoding of field ciphertexts ('base64' or 'hex')

        Raises:
            ConfigurationError: If a field is missing or its key material is unusable
        """
        missing = options.missing_fields()
        if missing:
            raise ConfigurationError(missing[0])

        self.options = options

        try:
            self.private_key = load_private_key(options.rsa_private_key)
        except ValueError as e:
            raise ConfigurationError('rsa_private_key', f"is invalid: {e}") from e

        try:
            self.public_key = load_public_key(options.rsa_public_key)
        except ValueError as e:
            raise ConfigurationError('rsa_public_key', f"is invalid: {e}") from e

        if cipher is None:
            try:
                cipher = TripleDesCipher.from_base64_key(options.des_key, ciphertext_encoding)
            except (binascii.Error, ValueError) as e:
                raise ConfigurationError('des_key', f"is invalid: {e}") from e
        self.cipher = cipher

        self.form_verifier = RsaSignatureVerifier(self.public_key, canonicalizer)
        self.xml_verifier = RecoverCompareVerifier(self.public_key, xml_canonicalizer)

    async def execute(self, request: web.Request) -> NotifyResponse:
        """
        Verify a notification request.

        Args:
            request: Inbound gateway request

        Returns:
            FormNotifyResponse or XmlNotifyResponse, depending on the request

        Raises:
            NotifyError: The specific reason the notification was rejected
        """
        payload = await decode_request(request)

        if payload.kind is PayloadKind.FORM:
            return self.execute_form(payload.parameters or {})
        return self.execute_xml(payload.body or '')

    async def try_execute(
        self,
        request: web.Request
    ) -> Tuple[Optional[NotifyResponse], Optional[NotifyError]]:
        """
        Verify a notification request without raising.

        Returns:
            Tuple of (result, error); exactly one is set
        """
        try:
            return await self.execute(request), None
        except NotifyError as e:
            logger.warning(f"Notification rejected: {e}")
            return None, e

    def execute_form(self, parameters: Mapping[str, str]) -> FormNotifyResponse:
        """
        Verify form notification parameters.

        Args:
            parameters: Raw, still encrypted, non-empty form fields

        Returns:
            FormNotifyResponse with decrypted fields
        """
        logger.debug(f"Request: {urlencode(dict(parameters))}")

        if not parameters:
            raise EmptyParameters()
        if not parameters.get(SIGN):
            raise MissingSignature()

        decrypted = {
            key: value if key == SIGN else self.cipher.decrypt(value, field=key)
            for key, value in parameters.items()
        }

        if not self.form_verifier.verify(decrypted):
            raise SignatureVerificationFailed()

        response = parse_parameters(decrypted)
        logger.info(f"Verified form notification for trade {response.trade_num}")
        return response

    def execute_xml(self, body: str) -> XmlNotifyResponse:
        """
        Verify an XML notification body.

        Args:
            body: Raw XML text of the outer envelope

        Returns:
            XmlNotifyResponse built from the decrypted inner document
        """
        envelope = parse_envelope(body)
        if not envelope.encrypt:
            raise EmptyEncryptedPayload()

        inner_body = self.cipher.decrypt_envelope(envelope.encrypt)
        logger.debug(f"Encrypt content: {inner_body}")

        try:
            inner_root = parse_document(inner_body)
        except etree.XMLSyntaxError as e:
            raise DecryptionFailed(f"decrypted envelope is not well-formed XML: {e}", 'encrypt') from e

        sign = inner_root.findtext(SIGN)
        if not self.xml_verifier.verify(inner_root, sign, envelope.header):
            raise SignatureVerificationFailed()

        response = build_xml_response(inner_root, inner_body, envelope.encrypt)
        logger.info(f"Verified XML notification for trade {response.trade_num}")
        return response
