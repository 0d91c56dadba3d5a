"""
Configuration module for the JDPay notify verifier.

Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, fields
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass(frozen=True)
class JDPayConfig:
    """
    Merchant key material for verifying gateway callbacks.

    Shared by reference across every verification call; never mutated.
    """
    merchant: str
    rsa_private_key: str
    rsa_public_key: str
    des_key: str  # base64

    def missing_fields(self) -> List[str]:
        """Names of required fields that are empty, in declaration order."""
        return [f.name for f in fields(self) if not getattr(self, f.name)]


@dataclass
class APIConfig:
    """Notify endpoint configuration."""
    host: str
    port: int
    notify_path: str


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    file: Optional[str]


@dataclass
class ServiceConfig:
    """Service-level configuration."""
    name: str


class Config:
    """
    Main configuration class that aggregates all config sections.

    Usage:
        from config import config

        print(config.jdpay.merchant)
        print(config.api.notify_path)
    """

    def __init__(self):
        self._load_config()

    def _load_config(self):
        """Load all configuration from environment variables."""

        # JDPay merchant keys
        self.jdpay = JDPayConfig(
            merchant=os.getenv('JDPAY_MERCHANT', ''),
            rsa_private_key=os.getenv('JDPAY_RSA_PRIVATE_KEY', ''),
            rsa_public_key=os.getenv('JDPAY_RSA_PUBLIC_KEY', ''),
            des_key=os.getenv('JDPAY_DES_KEY', '')
        )

        # Notify endpoint configuration
        self.api = APIConfig(
            host=os.getenv('NOTIFY_HOST', '0.0.0.0'),
            port=int(os.getenv('NOTIFY_PORT', '8000')),
            notify_path=os.getenv('NOTIFY_PATH', '/jdpay/notify')
        )

        # Logging configuration
        self.logging = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO'),
            file=os.getenv('LOG_FILE')
        )

        # Service configuration
        self.service = ServiceConfig(
            name=os.getenv('SERVICE_NAME', 'JDPayNotifyVerifier')
        )

    def validate(self) -> List[str]:
        """
        Validate required configuration values.

        Returns:
            List of validation error messages (empty if all valid)
        """
        env_names = {
            'merchant': 'JDPAY_MERCHANT',
            'rsa_private_key': 'JDPAY_RSA_PRIVATE_KEY',
            'rsa_public_key': 'JDPAY_RSA_PUBLIC_KEY',
            'des_key': 'JDPAY_DES_KEY',
        }
        return [
            f"{env_names[name]} is required"
            for name in self.jdpay.missing_fields()
        ]

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


# Global configuration instance
config = Config()
