"""
Tests for the example notify receiver application.

Run with: pytest tests/test_notify_receiver.py -v
"""

import asyncio

from aiohttp import test_utils

from examples.notify_receiver import create_app


async def post_notify(app, **kwargs):
    async with test_utils.TestClient(test_utils.TestServer(app)) as http:
        response = await http.post('/jdpay/notify', **kwargs)
        return response.status, await response.text()


class TestNotifyReceiver:
    """Tests for the receiver's acknowledgment responses."""

    def test_acknowledges_verified_notification(self, client, builder, trade_fields):
        """Test a verified XML notification is acknowledged with success."""
        app = create_app(client)
        status, text = asyncio.run(post_notify(
            app,
            data=builder.xml(trade_fields),
            headers={'Content-Type': 'text/xml'}
        ))

        assert status == 200
        assert text == 'success'

    def test_rejects_unsigned_form(self, client, cipher):
        """Test a form notification without sign is refused."""
        app = create_app(client)
        status, text = asyncio.run(post_notify(
            app,
            data={'tradeNum': cipher.encrypt('T1')}
        ))

        assert status == 400
        assert text.startswith('fail:')

    def test_health(self, client):
        """Test the health endpoint."""

        async def run():
            async with test_utils.TestClient(test_utils.TestServer(create_app(client))) as http:
                response = await http.get('/health')
                return response.status, await response.json()

        assert asyncio.run(run()) == (200, {"status": "healthy"})
