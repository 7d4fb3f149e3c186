from __future__ import annotations

import logging
import threading
from typing import Optional

from .application.use_cases.clean_roomplan import CleanRoomplanUseCase
from .application.use_cases.extract_frames import ExtractFramesUseCase
from .config import ProcessingConfig, load_config
from .domain.events import ObjectFinalized
from .domain.jobs import (
    FrameExtractionJob,
    FrameExtractionResult,
    RoomplanCleanupJob,
    RoomplanCleanupResult,
    is_roomplan_key,
    is_walkthrough_key,
)
from .infrastructure.queue import (
    create_queue as build_queue,
    create_worker as build_worker,
)
from .infrastructure.storage import create_storage_gateway
from .infrastructure.transcoder import build_frame_filter, create_frame_transcoder
from .listener import listen_for_object_finalized

logger = logging.getLogger(__name__)

_CONFIG: ProcessingConfig | None = None
_EXTRACT_FRAMES_USE_CASE: ExtractFramesUseCase | None = None
_CLEAN_ROOMPLAN_USE_CASE: CleanRoomplanUseCase | None = None


def get_config() -> ProcessingConfig:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
    return _CONFIG


def get_extract_frames_use_case() -> ExtractFramesUseCase:
    global _EXTRACT_FRAMES_USE_CASE
    if _EXTRACT_FRAMES_USE_CASE is None:
        cfg = get_config()
        _EXTRACT_FRAMES_USE_CASE = ExtractFramesUseCase(
            storage=create_storage_gateway(cfg),
            transcoder=create_frame_transcoder(cfg),
            video_filter=build_frame_filter(
                cfg.frame_sample_fps, cfg.frame_max_dimension
            ),
            fps=cfg.frame_sample_fps,
            upload_concurrency=cfg.upload_concurrency,
        )
    return _EXTRACT_FRAMES_USE_CASE


def get_clean_roomplan_use_case() -> CleanRoomplanUseCase:
    global _CLEAN_ROOMPLAN_USE_CASE
    if _CLEAN_ROOMPLAN_USE_CASE is None:
        cfg = get_config()
        _CLEAN_ROOMPLAN_USE_CASE = CleanRoomplanUseCase(
            storage=create_storage_gateway(cfg),
            model_file_name=cfg.model_file_name,
            architecture_file_name=cfg.architecture_file_name,
            target_prim_name=cfg.target_prim_name,
            upload_concurrency=cfg.upload_concurrency,
        )
    return _CLEAN_ROOMPLAN_USE_CASE


def extract_frames(bucket_name: str, object_key: str) -> FrameExtractionResult | None:
    """Frame extraction job for ``<root>/.../raw/walkthrough.mov``."""
    if not is_walkthrough_key(object_key, get_config().root_prefix):
        logger.info("Skipping object (not a walkthrough.mov under raw/): %s", object_key)
        return None

    logger.info("Starting frame extraction for %s/%s", bucket_name, object_key)
    job = FrameExtractionJob(bucket=bucket_name, object_key=object_key)
    try:
        return get_extract_frames_use_case().execute(job)
    except Exception:
        logger.exception("Frame extraction failed for %s/%s", bucket_name, object_key)
        raise


def clean_roomplan(bucket_name: str, object_key: str) -> RoomplanCleanupResult | None:
    """RoomPlan cleanup job for ``<root>/.../raw/roomplan.zip``."""
    if not is_roomplan_key(object_key, get_config().root_prefix):
        logger.info("Skipping object (not a roomplan.zip under raw/): %s", object_key)
        return None

    logger.info("Starting RoomPlan cleanup for %s/%s", bucket_name, object_key)
    job = RoomplanCleanupJob(bucket=bucket_name, object_key=object_key)
    try:
        return get_clean_roomplan_use_case().execute(job)
    except Exception:
        logger.exception("RoomPlan cleanup failed for %s/%s", bucket_name, object_key)
        raise


def enqueue_frames(bucket: str, key: str):
    cfg = get_config()
    queue = build_queue(cfg, cfg.frames_queue_name)
    job = queue.enqueue(extract_frames, bucket, key, job_timeout=cfg.job_timeout_seconds)
    logger.info("Enqueued frame extraction job id=%s for %s/%s", job.id, bucket, key)
    return job


def enqueue_roomplan(bucket: str, key: str):
    cfg = get_config()
    queue = build_queue(cfg, cfg.roomplan_queue_name)
    job = queue.enqueue(clean_roomplan, bucket, key, job_timeout=cfg.job_timeout_seconds)
    logger.info("Enqueued RoomPlan cleanup job id=%s for %s/%s", job.id, bucket, key)
    return job


def dispatch(event: ObjectFinalized):
    """Route a finalize notification to the pipeline whose trigger it matches."""
    root_prefix = get_config().root_prefix
    if is_walkthrough_key(event.object_key, root_prefix):
        return enqueue_frames(event.bucket, event.object_key)
    if is_roomplan_key(event.object_key, root_prefix):
        return enqueue_roomplan(event.bucket, event.object_key)
    logger.info(
        "Skipping object %s/%s (content type %r): no matching pipeline",
        event.bucket,
        event.object_key,
        event.content_type,
    )
    return None


def run_worker(queue_names: Optional[list[str]] = None):
    cfg = get_config()
    names = queue_names or [cfg.frames_queue_name, cfg.roomplan_queue_name]
    worker = build_worker(cfg, names)
    logger.info("Starting worker for queues: %s", ", ".join(names))
    worker.work()


def run_worker_service(
    queue_names: Optional[list[str]] = None,
    enable_listener: bool = True,
):
    stop_event = threading.Event()
    cfg = get_config()

    listener_thread = None
    if enable_listener:
        listener_thread = threading.Thread(
            target=listen_for_object_finalized,
            args=(cfg, dispatch, stop_event),
            daemon=True,
        )
        listener_thread.start()
        logger.info("Started listener thread")

    try:
        run_worker(queue_names=queue_names)
    except KeyboardInterrupt:
        logger.info("Shutting down worker...")
    finally:
        stop_event.set()
        if listener_thread and listener_thread.is_alive():
            listener_thread.join(timeout=2)
