#!/usr/bin/env python3
"""
Example: JDPay Notify Receiver for Merchants

This script demonstrates how a merchant would receive and verify
asynchronous payment notifications from the JDPay gateway.

Usage:
    python notify_receiver.py --port 5000

Environment variables:
    JDPAY_MERCHANT, JDPAY_RSA_PRIVATE_KEY, JDPAY_RSA_PUBLIC_KEY, JDPAY_DES_KEY

The script will:
1. Start a local web server
2. Listen for notification POST requests (form or XML)
3. Decrypt and verify each notification
4. Display the payment details
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from aiohttp import web

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config, config
from services.notify_client import NotifyClient

logger = logging.getLogger(__name__)


def setup_logging(settings: Config) -> None:
    """Configure logging based on config."""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    if settings.logging.file:
        # Ensure log directory exists
        log_dir = os.path.dirname(settings.logging.file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(settings.logging.file))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )

    # Reduce noise from third-party libraries
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


async def handle_notify(request: web.Request) -> web.Response:
    """Handle incoming gateway notifications."""
    client: NotifyClient = request.app['notify_client']

    response, error = await client.try_execute(request)
    if error is not None:
        # The gateway resends until it gets a success acknowledgment
        return web.Response(text=f"fail: {error}", status=400)

    logger.info(
        f"Payment notification: trade={response.trade_num} "
        f"amount={response.amount} status={response.status}"
    )
    logger.debug(json.dumps(response.to_dict(), indent=2))

    # In a real implementation, you would:
    # 1. Store the notification in your database
    # 2. Update order status
    # 3. Trigger fulfillment

    return web.Response(text="success")


async def handle_health(request: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.json_response({"status": "healthy"})


def create_app(notify_client: NotifyClient, notify_path: str = '/jdpay/notify') -> web.Application:
    """Create the notify receiver application."""
    app = web.Application()
    app['notify_client'] = notify_client

    app.router.add_post(notify_path, handle_notify)
    app.router.add_get('/health', handle_health)

    return app


async def main():
    parser = argparse.ArgumentParser(
        description='Receiver for JDPay payment notifications'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=config.api.port,
        help=f'Port to listen on (default: {config.api.port})'
    )
    parser.add_argument(
        '--host',
        default=config.api.host,
        help=f'Host to bind to (default: {config.api.host})'
    )

    args = parser.parse_args()

    setup_logging(config)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        sys.exit(1)

    # Keys are parsed once; the client is shared by every request
    client = NotifyClient(config.jdpay)
    app = create_app(client, config.api.notify_path)

    logger.info("=" * 60)
    logger.info(f"Starting {config.service.name}")
    logger.info(f"Notify endpoint: http://{args.host}:{args.port}{config.api.notify_path}")
    logger.info("=" * 60)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, args.host, args.port)
    await site.start()

    # Run forever
    await asyncio.Event().wait()


if __name__ == '__main__':
    asyncio.run(main())
