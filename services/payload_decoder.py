"""
Inbound notification payload decoding.

Classifies the request by content type before touching the body, then
extracts either form fields or the raw XML text.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from aiohttp import web

from .exceptions import MalformedPayload, UnsupportedContentType

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ('application/x-www-form-urlencoded', 'multipart/form-data')
XML_CONTENT_TYPES = ('text/xml', 'application/xml')

_BETWEEN_TAGS = re.compile(r'>\s+<')


class PayloadKind(str, Enum):
    """Supported notification transport shapes."""
    FORM = "form"
    XML = "xml"


@dataclass(frozen=True)
class DecodedPayload:
    """Raw notification content, not yet decrypted or verified."""

    kind: PayloadKind
    parameters: Optional[Dict[str, str]] = None
    body: Optional[str] = None


def classify_content_type(content_type: Optional[str]) -> PayloadKind:
    """
    Map a Content-Type header value to a payload kind.

    Raises:
        UnsupportedContentType: For anything but form or XML
    """
    mime = (content_type or '').split(';', 1)[0].strip().lower()
    if mime in FORM_CONTENT_TYPES:
        return PayloadKind.FORM
    if mime in XML_CONTENT_TYPES:
        return PayloadKind.XML
    raise UnsupportedContentType(content_type)


def decode_form(items: Iterable[Tuple[str, Any]]) -> Dict[str, str]:
    """Collect text form fields, skipping empty values and file parts."""
    parameters = {}
    for key, value in items:
        if isinstance(value, str) and value:
            parameters[key] = value
    return parameters


def format_xml_string(body: str) -> str:
    """Strip line breaks and inter-tag whitespace from an XML body."""
    body = body.replace('\r', '').replace('\n', '').strip().lstrip('\ufeff')
    return _BETWEEN_TAGS.sub('><', body)


async def decode_request(request: web.Request) -> DecodedPayload:
    """
    Decode an inbound notification request.

    Args:
        request: aiohttp request from the gateway

    Returns:
        DecodedPayload holding form parameters or XML text
    """
    kind = classify_content_type(request.content_type)

    if kind is PayloadKind.FORM:
        form = await request.post()
        parameters = decode_form(form.items())
        logger.debug(f"Decoded form notification with {len(parameters)} fields")
        return DecodedPayload(kind=kind, parameters=parameters)

    raw = await request.read()
    try:
        body = raw.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise MalformedPayload(f"XML body is not valid UTF-8: {e}") from e
    logger.debug(f"Request: {body}")
    return DecodedPayload(kind=kind, body=body)
