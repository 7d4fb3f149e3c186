from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _load_repo_env() -> None:
    """Load the nearest .env starting from this file upward."""
    current = Path(__file__).resolve()
    for candidate in [current.parent, *current.parents]:
        env_file = candidate / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


_load_repo_env()


@dataclass(frozen=True)
class ProcessingConfig:
    storage_endpoint_url: str
    storage_region: str
    storage_access_key: str
    storage_secret_key: str
    redis_host: str
    redis_port: int
    redis_db: int
    redis_channel: str
    frames_queue_name: str
    roomplan_queue_name: str
    job_timeout_seconds: int
    root_prefix: str
    ffmpeg_path: str
    frame_sample_fps: float
    frame_max_dimension: int
    frame_jpeg_qscale: int
    model_file_name: str
    architecture_file_name: str
    target_prim_name: str
    upload_concurrency: int
    log_level: str


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number") from exc


def _normalize_prefix(prefix: str) -> str:
    return prefix if prefix.endswith("/") else f"{prefix}/"


def load_config() -> ProcessingConfig:
    return ProcessingConfig(
        storage_endpoint_url=os.getenv("MINIO_ENDPOINT", "http://minio:9000"),
        storage_region=os.getenv("MINIO_REGION", "us-east-1"),
        storage_access_key=os.getenv("MINIO_ACCESS_KEY", "minioadmin"),
        storage_secret_key=os.getenv("MINIO_SECRET_KEY", "minioadmin"),
        redis_host=os.getenv("REDIS_HOST", "localhost"),
        redis_port=_env_int("REDIS_PORT", 6379),
        redis_db=_env_int("REDIS_DB", 0),
        redis_channel=os.getenv("PROCESSING_REDIS_CHANNEL", "object_finalized"),
        frames_queue_name=os.getenv("PROCESSING_FRAMES_QUEUE", "frames"),
        roomplan_queue_name=os.getenv("PROCESSING_ROOMPLAN_QUEUE", "roomplan"),
        job_timeout_seconds=_env_int("PROCESSING_JOB_TIMEOUT_SECONDS", 540),
        root_prefix=_normalize_prefix(os.getenv("PROCESSING_ROOT_PREFIX", "targets/")),
        ffmpeg_path=os.getenv("FFMPEG_PATH", "ffmpeg"),
        frame_sample_fps=_env_float("FRAME_SAMPLE_FPS", 5.0),
        frame_max_dimension=_env_int("FRAME_MAX_DIMENSION", 512),
        frame_jpeg_qscale=_env_int("FRAME_JPEG_QSCALE", 2),
        model_file_name=os.getenv("ROOMPLAN_MODEL_FILE_NAME", "RoomPlanParametric.usdz"),
        architecture_file_name=os.getenv(
            "ROOMPLAN_ARCHITECTURE_FILE_NAME", "RoomPlanArchitectureOnly.usdz"
        ),
        target_prim_name=os.getenv("ROOMPLAN_TARGET_PRIM", "Object_grp"),
        upload_concurrency=max(1, _env_int("PROCESSING_UPLOAD_CONCURRENCY", 8)),
        log_level=os.getenv("PROCESSING_LOG_LEVEL", "INFO").upper(),
    )
