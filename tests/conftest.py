"""Shared fixtures: keys, merchant configuration and gateway-side builder."""

import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from config import JDPayConfig
from services.des_cipher import TripleDesCipher
from services.notify_builder import NotifyBuilder
from services.notify_client import NotifyClient

DES_KEY = base64.b64encode(bytes(range(1, 25))).decode('ascii')
MERCHANT = '110000000001'


def _der_base64_private(key: rsa.RSAPrivateKey) -> str:
    der = key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )
    return base64.b64encode(der).decode('ascii')


def _der_base64_public(key: rsa.RSAPublicKey) -> str:
    der = key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )
    return base64.b64encode(der).decode('ascii')


@pytest.fixture(scope='session')
def gateway_key() -> rsa.RSAPrivateKey:
    """Key the gateway signs notifications with."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def merchant_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def jdpay_config(gateway_key, merchant_key) -> JDPayConfig:
    return JDPayConfig(
        merchant=MERCHANT,
        rsa_private_key=_der_base64_private(merchant_key),
        rsa_public_key=_der_base64_public(gateway_key.public_key()),
        des_key=DES_KEY
    )


@pytest.fixture
def cipher() -> TripleDesCipher:
    return TripleDesCipher.from_base64_key(DES_KEY)


@pytest.fixture
def client(jdpay_config) -> NotifyClient:
    return NotifyClient(jdpay_config)


@pytest.fixture
def builder(gateway_key, cipher) -> NotifyBuilder:
    return NotifyBuilder(gateway_key, cipher)


@pytest.fixture
def trade_fields():
    return {
        'version': 'V2.0',
        'merchant': MERCHANT,
        'result': {'code': '000000', 'desc': 'success'},
        'tradeNum': '1500000000001',
        'tradeType': '0',
        'amount': '1000',
        'currency': 'CNY',
        'note': 'coffee & cake',
        'status': '2'
    }
