from __future__ import annotations

from redis import Redis
from rq import Queue, Worker as RQWorker

from ..config import ProcessingConfig


def create_redis_connection(config: ProcessingConfig) -> Redis:
    return Redis(host=config.redis_host, port=config.redis_port, db=config.redis_db)


def create_queue(config: ProcessingConfig, queue_name: str) -> Queue:
    redis_conn = create_redis_connection(config)
    return Queue(
        queue_name,
        connection=redis_conn,
        default_timeout=config.job_timeout_seconds,
    )


def create_worker(config: ProcessingConfig, queue_names: list[str]) -> RQWorker:
    redis_conn = create_redis_connection(config)
    queues = [Queue(name, connection=redis_conn) for name in queue_names]
    return RQWorker(queues, connection=redis_conn)
