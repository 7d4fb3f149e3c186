from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping
from urllib.parse import unquote_plus


@dataclass(frozen=True)
class ObjectFinalized:
    bucket: str
    object_key: str
    content_type: str = ""


def parse_finalize_payload(payload: Mapping[str, Any]) -> List[ObjectFinalized]:
    """Read object-finalize events from a notification payload.

    Accepts a flat ``{"bucket", "name" | "object_key", "contentType"}`` object
    or an S3/MinIO bucket notification carrying ``Records``. Entries missing
    a bucket or key are dropped.
    """
    records = payload.get("Records")
    if isinstance(records, list):
        return [event for event in map(_from_s3_record, records) if event is not None]

    bucket = payload.get("bucket")
    key = payload.get("name") or payload.get("object_key")
    if not isinstance(bucket, str) or not isinstance(key, str) or not bucket or not key:
        return []
    content_type = payload.get("contentType") or payload.get("content_type") or ""
    return [ObjectFinalized(bucket=bucket, object_key=key, content_type=str(content_type))]


def _from_s3_record(record: Any) -> ObjectFinalized | None:
    if not isinstance(record, Mapping):
        return None
    s3 = record.get("s3") or {}
    bucket = (s3.get("bucket") or {}).get("name")
    s3_object = s3.get("object") or {}
    key = s3_object.get("key")
    if not isinstance(bucket, str) or not isinstance(key, str) or not bucket or not key:
        return None
    return ObjectFinalized(
        bucket=bucket,
        object_key=unquote_plus(key),
        content_type=str(s3_object.get("contentType") or ""),
    )
