"""
Notification result models.

A closed set of verified result variants, one per transport shape.
Instances are only ever built after a successful signature check.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class NotifyResponse:
    """
    Verified gateway notification.

    Attributes:
        sign: Signature exactly as submitted
        fields: All named fields of the notification except sign and encrypt.
            XML elements with children map to nested dictionaries.
    """

    sign: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        """Get a field value by its wire name."""
        return self.fields.get(name, default)

    def _text(self, name: str) -> Optional[str]:
        value = self.fields.get(name)
        return value if isinstance(value, str) else None

    def _result_text(self, name: str) -> Optional[str]:
        result = self.fields.get('result')
        if isinstance(result, dict):
            return result.get(name)
        return None

    @property
    def version(self) -> Optional[str]:
        return self._text('version')

    @property
    def merchant(self) -> Optional[str]:
        return self._text('merchant')

    @property
    def trade_num(self) -> Optional[str]:
        return self._text('tradeNum')

    @property
    def trade_type(self) -> Optional[str]:
        return self._text('tradeType')

    @property
    def amount(self) -> Optional[str]:
        return self._text('amount')

    @property
    def currency(self) -> Optional[str]:
        return self._text('currency')

    @property
    def status(self) -> Optional[str]:
        return self._text('status')

    @property
    def result_code(self) -> Optional[str]:
        return self._result_text('code')

    @property
    def result_desc(self) -> Optional[str]:
        return self._result_text('desc')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = dict(self.fields)
        data['sign'] = self.sign
        return data


@dataclass(frozen=True)
class FormNotifyResponse(NotifyResponse):
    """Notification received as URL-form fields, each decrypted."""


@dataclass(frozen=True)
class XmlNotifyResponse(NotifyResponse):
    """
    Notification received as an XML envelope.

    Attributes:
        encrypt: The envelope as originally submitted, still encrypted
        body: The decrypted inner document
    """

    encrypt: str = ''
    body: str = ''

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['encrypt'] = self.encrypt
        return data
