import asyncio, json
from uuid import UUID
from aio_pika import connect_robust, ExchangeType
from sqlalchemy import select
from app.core.config import settings
from app.core.logging import logger
from app.websocket.manager import manager
from app.db.session import AsyncSessionLocal
from app.db.models import Event, User, Registration
from app.events.publisher import EXCHANGE_NAME

NOTIFICATION_QUEUE = "eventease.notifications"
# Drained by the mail delivery service; reset tokens never reach API responses
PASSWORD_RESET_QUEUE = "eventease.password_resets"


async def handle_message(body: bytes):
    data = json.loads(body.decode())
    typ = data.get("type")
    if typ == "registration.created":
        await _notify_registration(data)
    elif typ == "event.cancelled":
        await _notify_cancellation(data)
    else:
        logger.debug(f"Ignoring message of type {typ}")


async def _notify_registration(data: dict):
    event_id = UUID(data["event_id"])
    user_id = UUID(data["user_id"])
    async with AsyncSessionLocal() as session:
        ev = (await session.execute(select(Event).where(Event.id == event_id))).scalars().first()
        usr = (await session.execute(select(User).where(User.id == user_id))).scalars().first()
    if not ev:
        return
    await manager.send_personal_message(ev.organizer_id, {
        "type": "registration.created",
        "event_id": str(ev.id),
        "event_title": ev.title,
        "attendee_name": usr.name if usr else None,
    })
    await manager.send_personal_message(user_id, {"type": "registration.confirmation", "event": ev.title})


async def _notify_cancellation(data: dict):
    event_id = UUID(data["event_id"])
    async with AsyncSessionLocal() as session:
        attendee_ids = (await session.execute(
            select(Registration.user_id).where(Registration.event_id == event_id)
        )).scalars().all()
    payload = {
        "type": "event.cancelled",
        "event_id": str(event_id),
        "event_title": data.get("event_title"),
        "reason": data.get("reason"),
    }
    for attendee_id in attendee_ids:
        await manager.send_personal_message(attendee_id, payload)


async def run_worker():
    max_retries = 10
    delay = 5  # seconds
    for attempt in range(1, max_retries + 1):
        try:
            connection = await connect_robust(settings.RABBITMQ_URL)
            logger.info("Successfully connected to RabbitMQ")
            break
        except Exception as e:
            logger.error(f"RabbitMQ connection failed (attempt {attempt}/{max_retries}): {e}")
            if attempt == max_retries:
                raise
            await asyncio.sleep(delay)
    channel = await connection.channel()
    exchange = await channel.declare_exchange(EXCHANGE_NAME, ExchangeType.TOPIC, durable=True)

    resets = await channel.declare_queue(PASSWORD_RESET_QUEUE, durable=True)
    await resets.bind(exchange, routing_key="password_reset.*")

    queue = await channel.declare_queue(NOTIFICATION_QUEUE, durable=True)
    await queue.bind(exchange, routing_key="registration.*")
    await queue.bind(exchange, routing_key="event.*")
    async with queue.iterator() as queue_iter:
        async for message in queue_iter:
            async with message.process():
                try:
                    await handle_message(message.body)
                except Exception as e:
                    logger.error(f"Error handling message: {e}", exc_info=True)
