import json
import logging
from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from channels.db import database_sync_to_async
from .converter import get_default_converter, get_record_store, get_conversion_log
from .exceptions import ConversionError, RateFetchError, user_message

logger = logging.getLogger(__name__)


class ConversionConsumer(AsyncWebsocketConsumer):
    """WebSocket consumer that runs conversions for the form client."""

    async def connect(self):
        """Handle WebSocket connection."""
        await self.accept()

    async def receive(self, text_data=None, bytes_data=None):
        """Handle messages from client."""
        try:
            data = json.loads(text_data or '')
        except json.JSONDecodeError:
            await self.send_error('bad_request', 'Messages must be JSON objects')
            return
        if not isinstance(data, dict):
            await self.send_error('bad_request', 'Messages must be JSON objects')
            return

        message_type = data.get('type')
        if message_type == 'convert':
            await self.convert(data.get('amount'), data.get('source'), data.get('target'))
        elif message_type == 'get_rates':
            await self.send_rates()
        else:
            await self.send_error('bad_request', f'Unknown message type: {message_type}')

    async def convert(self, amount, source, target):
        """Convert, reply with the result, then save and log it."""
        try:
            result = await get_default_converter().convert_async(amount, source, target)
        except RateFetchError as e:
            logger.exception(f"Failed to fetch live rates: {e}")
            await self.send_error(e.code, user_message(e))
            return
        except ConversionError as e:
            await self.send_error(e.code, user_message(e))
            return

        await self.send(text_data=json.dumps({
            'type': 'conversion',
            'data': result.to_dict()
        }))

        await database_sync_to_async(get_record_store().save)(result)
        get_conversion_log().append(result)

    async def send_rates(self):
        """Send the active rate table."""
        rates = get_default_converter().rates
        try:
            table = await sync_to_async(rates.get_table, thread_sensitive=False)()
        except RateFetchError as e:
            logger.exception(f"Failed to fetch live rates: {e}")
            await self.send_error(e.code, user_message(e))
            return

        await self.send(text_data=json.dumps({
            'type': 'rates',
            'data': {'base': table['base'], 'rates': table['rates']}
        }))

    async def send_error(self, code: str, message: str):
        await self.send(text_data=json.dumps({
            'type': 'error',
            'code': code,
            'message': message
        }))
