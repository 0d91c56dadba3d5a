"""
Errors raised while verifying gateway notifications.

Every failure path of the notify pipeline ends in exactly one of these.
"""

from typing import Optional


class NotifyError(Exception):
    """Base class for all notify verification errors."""


class ConfigurationError(NotifyError):
    """Required key material is missing or unusable."""

    def __init__(self, field: str, reason: str = "is required"):
        self.field = field
        super().__init__(f"{field} {reason}")


class UnsupportedContentType(NotifyError):
    """Request encoding is neither form nor XML."""

    def __init__(self, content_type: Optional[str]):
        self.content_type = content_type
        super().__init__(f"Content type is not supported: {content_type!r}")


class MalformedPayload(NotifyError):
    """The XML body could not be parsed."""


class EmptyParameters(NotifyError):
    """Form notification carried no non-empty fields."""

    def __init__(self):
        super().__init__("sign check fail: parameters is empty")


class MissingSignature(NotifyError):
    """Form notification lacks the sign field."""

    def __init__(self):
        super().__init__("sign check fail: sign is empty")


class EmptyEncryptedPayload(NotifyError):
    """XML notification lacks the encrypt field."""

    def __init__(self):
        super().__init__("encrypt is empty")


class DecryptionFailed(NotifyError):
    """Ciphertext or its padding is malformed."""

    def __init__(self, reason: str, field: Optional[str] = None):
        self.field = field
        self.reason = reason
        if field:
            super().__init__(f"decrypt fail for field '{field}': {reason}")
        else:
            super().__init__(f"decrypt fail: {reason}")


class SignatureVerificationFailed(NotifyError):
    """Signature does not match the canonical content."""

    def __init__(self, reason: str = "check sign and data fail"):
        super().__init__(f"sign check fail: {reason}")
