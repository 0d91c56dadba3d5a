"""
Mapping of notification content into result models.

Also holds the XML helpers shared by the verifier and signers.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from lxml import etree

from models.notify import FormNotifyResponse, XmlNotifyResponse
from .canonical import SIGN
from .exceptions import MalformedPayload
from .payload_decoder import format_xml_string

ENCRYPT = 'encrypt'
RESERVED_FIELDS = (SIGN, ENCRYPT)

# Gateway input is untrusted: no entity expansion, no network lookups
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)


@dataclass(frozen=True)
class XmlEnvelope:
    """Outer XML document of a notification, before decryption."""

    encrypt: Optional[str]
    header: str


def parse_document(text: str) -> etree._Element:
    """
    Parse XML text into its root element.

    Raises:
        etree.XMLSyntaxError: If the text is not well-formed XML
    """
    return etree.fromstring(text.encode('utf-8'), parser=_PARSER)


def document_header(text: str, root: etree._Element) -> str:
    """Text preceding the root element's opening tag, e.g. the XML declaration."""
    index = text.find('<' + etree.QName(root).localname)
    return text[:index] if index > 0 else ''


def element_to_fields(root: etree._Element) -> Dict[str, Any]:
    """Map child elements to text, or to nested dicts when they have children."""
    fields: Dict[str, Any] = {}
    for child in root:
        if not isinstance(child.tag, str):
            continue
        name = etree.QName(child).localname
        if len(child):
            fields[name] = element_to_fields(child)
        else:
            fields[name] = child.text or ''
    return fields


def parse_envelope(body: str) -> XmlEnvelope:
    """
    Parse the outer document of an XML notification.

    Raises:
        MalformedPayload: If the body is not well-formed XML
    """
    formatted = format_xml_string(body)
    try:
        root = parse_document(formatted)
    except etree.XMLSyntaxError as e:
        raise MalformedPayload(f"cannot parse XML body: {e}") from e

    return XmlEnvelope(
        encrypt=root.findtext(ENCRYPT) or None,
        header=document_header(formatted, root)
    )


def parse_parameters(parameters: Mapping[str, str]) -> FormNotifyResponse:
    """Build a form result from verified, decrypted parameters."""
    return FormNotifyResponse(
        sign=parameters[SIGN],
        fields={k: v for k, v in parameters.items() if k != SIGN}
    )


def build_xml_response(root: etree._Element, body: str, encrypt: str) -> XmlNotifyResponse:
    """
    Build an XML result from a verified inner document.

    Args:
        root: Root element of the decrypted inner document
        body: Decrypted inner document text
        encrypt: Envelope as originally submitted, carried forward
    """
    fields = element_to_fields(root)
    for name in RESERVED_FIELDS:
        fields.pop(name, None)

    return XmlNotifyResponse(
        sign=root.findtext(SIGN) or '',
        fields=fields,
        encrypt=encrypt,
        body=body
    )
