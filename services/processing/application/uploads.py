from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Tuple

from services.processing.application.interfaces import StorageGateway

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".jsonl": "application/json",
    ".json": "application/json",
    ".zip": "application/zip",
}


def content_type_for(path: Path | str) -> str | None:
    return CONTENT_TYPES.get(Path(path).suffix.lower())


def upload_batch(
    storage: StorageGateway,
    bucket: str,
    items: Iterable[Tuple[str, Path]],
    *,
    max_workers: int = 8,
) -> List[str]:
    """Upload ``(object_key, local_path)`` pairs on a bounded thread pool.

    All uploads are submitted before any result is awaited. The first
    failure in submission order is re-raised after the pool drains.
    """
    pending = list(items)
    if not pending:
        return []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = [
            executor.submit(
                storage.upload,
                bucket,
                object_key,
                path.as_posix(),
                content_type_for(path),
            )
            for object_key, path in pending
        ]
        for future in futures:
            future.result()
    logger.info("Uploaded %d objects to %s", len(pending), bucket)
    return [object_key for object_key, _ in pending]
