from unittest import mock

import pytest
from channels.testing import WebsocketCommunicator

from conversions.cache import RateCache
from conversions.consumers import ConversionConsumer
from conversions.converter import Converter, get_conversion_log
from conversions.exceptions import NetworkError

from .conftest import CountingSource


@pytest.fixture
def store():
    store = mock.Mock()
    store.save.return_value = True
    with mock.patch('conversions.consumers.get_record_store', return_value=store):
        yield store


async def _connect():
    communicator = WebsocketCommunicator(ConversionConsumer.as_asgi(), '/ws/conversions/')
    connected, _ = await communicator.connect()
    assert connected
    return communicator


@pytest.mark.asyncio
async def test_convert_replies_then_saves(store):
    communicator = await _connect()

    await communicator.send_json_to({'type': 'convert', 'amount': 100, 'source': 'usd', 'target': 'inr'})
    message = await communicator.receive_json_from()
    await communicator.disconnect()

    assert message == {
        'type': 'conversion',
        'data': {'amount': 100.0, 'source': 'USD', 'target': 'INR', 'result': 8300.0},
    }
    store.save.assert_called_once()
    assert store.save.call_args.args[0].result == 8300.0
    assert get_conversion_log().snapshot()[0].result == 8300.0


@pytest.mark.asyncio
async def test_invalid_amount_is_reported(store):
    communicator = await _connect()

    await communicator.send_json_to({'type': 'convert', 'amount': -5, 'source': 'USD', 'target': 'INR'})
    message = await communicator.receive_json_from()
    await communicator.disconnect()

    assert message['type'] == 'error'
    assert message['code'] == 'invalid_amount'
    store.save.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_failure_asks_to_try_again(store):
    failing = Converter(RateCache(CountingSource({}, error=NetworkError('refused'))))
    with mock.patch('conversions.consumers.get_default_converter', return_value=failing):
        communicator = await _connect()
        await communicator.send_json_to({'type': 'convert', 'amount': 1, 'source': 'USD', 'target': 'INR'})
        message = await communicator.receive_json_from()
        await communicator.disconnect()

    assert message == {
        'type': 'error',
        'code': 'network_error',
        'message': 'Could not fetch live rates. Please try again.',
    }


@pytest.mark.asyncio
async def test_get_rates(store):
    communicator = await _connect()

    await communicator.send_json_to({'type': 'get_rates'})
    message = await communicator.receive_json_from()
    await communicator.disconnect()

    assert message == {
        'type': 'rates',
        'data': {'base': 'USD', 'rates': {'USD': 1.0, 'INR': 83.0, 'EUR': 0.9}},
    }


@pytest.mark.asyncio
async def test_bad_messages_are_rejected(store):
    communicator = await _connect()

    await communicator.send_to(text_data='not json')
    first = await communicator.receive_json_from()
    await communicator.send_json_to({'type': 'subscribe'})
    second = await communicator.receive_json_from()
    await communicator.disconnect()

    assert first['code'] == 'bad_request'
    assert second['message'] == 'Unknown message type: subscribe'


@pytest.mark.asyncio
async def test_failed_save_keeps_result_and_connection(store):
    store.save.return_value = False
    communicator = await _connect()

    await communicator.send_json_to({'type': 'convert', 'amount': 100, 'source': 'USD', 'target': 'INR'})
    first = await communicator.receive_json_from()
    await communicator.send_json_to({'type': 'convert', 'amount': 830, 'source': 'INR', 'target': 'USD'})
    second = await communicator.receive_json_from()
    await communicator.disconnect()

    assert first == {
        'type': 'conversion',
        'data': {'amount': 100.0, 'source': 'USD', 'target': 'INR', 'result': 8300.0},
    }
    assert second['data']['result'] == 10.0
    assert store.save.call_count == 2
