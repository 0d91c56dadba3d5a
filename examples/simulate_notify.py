#!/usr/bin/env python3
"""
Example: Simulate a JDPay notification for testing.

This script signs and encrypts a trade notification the way the gateway
does and posts it to a running notify receiver.

Usage:
    python simulate_notify.py gateway_private_key.pem 1000 --format xml

Arguments:
    gateway_key: PEM private key whose public half is JDPAY_RSA_PUBLIC_KEY
    amount: Trade amount in fen
"""

import argparse
import asyncio
import os
import secrets
import sys
from datetime import datetime

import aiohttp

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import config
from services.des_cipher import TripleDesCipher
from services.notify_builder import NotifyBuilder
from services.rsa_keys import load_private_key


async def simulate_notify(
    url: str,
    gateway_key_path: str,
    amount: int,
    payload_format: str = "xml"
) -> None:
    """Build a notification and post it to the receiver."""

    with open(gateway_key_path, 'r') as f:
        gateway_key = load_private_key(f.read())

    builder = NotifyBuilder(
        gateway_key,
        TripleDesCipher.from_base64_key(config.jdpay.des_key)
    )

    fields = {
        'version': 'V2.0',
        'merchant': config.jdpay.merchant,
        'result': {'code': '000000', 'desc': 'success'},
        'tradeNum': f"sim{secrets.token_hex(8)}",
        'tradeType': '0',
        'amount': str(amount),
        'currency': 'CNY',
        'tradeTime': datetime.now().strftime('%Y%m%d%H%M%S'),
        'status': '2'
    }

    print(f"Simulating notification for trade {fields['tradeNum']}")
    print(f"Amount: {amount} fen, format: {payload_format}")
    print()

    async with aiohttp.ClientSession() as session:
        if payload_format == 'xml':
            body = builder.xml(fields)
            request = session.post(url, data=body, headers={'Content-Type': 'text/xml'})
        else:
            flat = {k: v for k, v in fields.items() if isinstance(v, str)}
            request = session.post(url, data=builder.form(flat))

        async with request as response:
            text = await response.text()

    if response.status == 200:
        print(f"✅ Receiver accepted notification: {text}")
    else:
        print(f"❌ Receiver rejected notification ({response.status}): {text}")


async def main():
    parser = argparse.ArgumentParser(
        description='Simulate a JDPay notification for testing'
    )
    parser.add_argument(
        'gateway_key',
        help='Path to the gateway RSA private key (PEM)'
    )
    parser.add_argument(
        'amount',
        type=int,
        help='Trade amount in fen (e.g., 1000)'
    )
    parser.add_argument(
        '--format',
        default='xml',
        choices=['xml', 'form'],
        help='Notification format (default: xml)'
    )
    parser.add_argument(
        '--url',
        default=f"http://localhost:{config.api.port}{config.api.notify_path}",
        help='Receiver notify URL'
    )

    args = parser.parse_args()

    await simulate_notify(
        url=args.url,
        gateway_key_path=args.gateway_key,
        amount=args.amount,
        payload_format=args.format
    )


if __name__ == '__main__':
    asyncio.run(main())
