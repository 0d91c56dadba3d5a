"""Data models for the JDPay notify verifier."""

from .notify import FormNotifyResponse, NotifyResponse, XmlNotifyResponse

__all__ = ['NotifyResponse', 'FormNotifyResponse', 'XmlNotifyResponse']
