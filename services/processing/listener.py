from __future__ import annotations

import json
import logging
from typing import Callable

import redis

from .config import ProcessingConfig
from .domain.events import ObjectFinalized, parse_finalize_payload

logger = logging.getLogger(__name__)


def listen_for_object_finalized(
    config: ProcessingConfig,
    dispatch_fn: Callable[[ObjectFinalized], object],
    stop_event=None,
) -> None:
    client = redis.Redis(
        host=config.redis_host, port=config.redis_port, db=config.redis_db
    )
    pubsub = client.pubsub()
    pubsub.subscribe(config.redis_channel)
    logger.info("Listening for object events on channel %r", config.redis_channel)
    for message in pubsub.listen():
        if stop_event and stop_event.is_set():
            break
        if message.get("type") != "message":
            continue
        try:
            payload = json.loads(message["data"])
        except (TypeError, json.JSONDecodeError):
            continue
        if not isinstance(payload, dict):
            continue
        for event in parse_finalize_payload(payload):
            logger.info("Object finalized: %s/%s", event.bucket, event.object_key)
            dispatch_fn(event)
