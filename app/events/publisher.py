import json
from aio_pika import connect_robust, Message, ExchangeType, DeliveryMode
from app.core.config import settings
from app.core.logging import logger

EXCHANGE_NAME = "eventease.events"

_connection = None
_channel = None


async def get_rabbit_connection():
    global _connection, _channel
    if _connection and not _connection.is_closed:
        return _connection, _channel
    _connection = await connect_robust(settings.RABBITMQ_URL)
    _channel = await _connection.channel()
    return _connection, _channel


async def publish_event(routing_key: str, payload: dict) -> bool:
    """
    Publish a domain event to the topic exchange.

    Notifications are best effort: a broker failure is logged and reported
    as False, never raised into the request that triggered it.
    """
    if not settings.NOTIFICATIONS_ENABLED:
        return False
    try:
        _, channel = await get_rabbit_connection()
        exchange = await channel.declare_exchange(EXCHANGE_NAME, ExchangeType.TOPIC, durable=True)
        body = json.dumps({"type": routing_key, **payload}, default=str).encode()
        message = Message(body, content_type="application/json", delivery_mode=DeliveryMode.PERSISTENT)
        await exchange.publish(message, routing_key=routing_key)
        return True
    except Exception as e:
        logger.error(f"Failed to publish {routing_key}: {e}")
        return False
