"""
Async Kafka producer.

Publishes social graph events to the 'social-events' topic once the
transaction that produced them has committed:

  follow.created / follow.deleted
  like.created   / like.deleted
  review.created / review.deleted

Consumed by: the notification service (delivery is outside this service).
With KAFKA_ENABLED=false, or before init_kafka() runs, publishing is a no-op.
"""
import json
import logging
from typing import Optional

from aiokafka import AIOKafkaProducer

from app.config import settings

logger = logging.getLogger(__name__)

_producer: Optional[AIOKafkaProducer] = None


async def init_kafka() -> None:
    global _producer
    if not settings.kafka_enabled:
        logger.info("Kafka disabled — social events will not be published")
        return
    _producer = AIOKafkaProducer(
        bootstrap_servers=settings.kafka_bootstrap_servers,
        value_serializer=lambda v: json.dumps(v).encode("utf-8"),
        key_serializer=lambda k: k.encode("utf-8"),
        acks="all",          # wait for all in-sync replicas
        enable_idempotence=True,
    )
    await _producer.start()
    logger.info(
        "Kafka producer started → %s", settings.kafka_bootstrap_servers
    )


async def stop_kafka() -> None:
    global _producer
    if _producer:
        await _producer.stop()
        _producer = None


async def publish_social_event(event: dict) -> None:
    """
    Emit one social graph event.

    Schema:
      { event, actor_id, target_id, target_type, occurred_at, [rating] }

    Keyed by target_id so every event about one entity lands on the same
    partition, in commit order.
    """
    if _producer is None:
        logger.debug("Kafka producer not running; dropped %s", event["event"])
        return
    await _producer.send_and_wait(
        settings.kafka_topic_social_events, event, key=event["target_id"]
    )
    logger.debug("Published %s for target_id=%s", event["event"], event["target_id"])
