from __future__ import annotations

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError

from ..application.interfaces import StorageGateway
from ..config import ProcessingConfig

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


def create_s3_client(config: ProcessingConfig):
    return boto3.client(
        "s3",
        endpoint_url=config.storage_endpoint_url,
        region_name=config.storage_region,
        aws_access_key_id=config.storage_access_key,
        aws_secret_access_key=config.storage_secret_key,
        config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


class S3StorageGateway(StorageGateway):
    def __init__(self, client) -> None:
        self._client = client

    def download(self, bucket: str, object_key: str, destination_path: str) -> None:
        self._client.download_file(bucket, object_key, destination_path)

    def upload(
        self,
        bucket: str,
        object_key: str,
        source_path: str,
        content_type: str | None = None,
    ) -> None:
        extra_args = {"ContentType": content_type} if content_type else None
        self._client.upload_file(source_path, bucket, object_key, ExtraArgs=extra_args)

    def exists(self, bucket: str, object_key: str) -> bool:
        try:
            self._client.head_object(Bucket=bucket, Key=object_key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                return False
            raise
        return True


def create_storage_gateway(config: ProcessingConfig) -> StorageGateway:
    client = create_s3_client(config)
    return S3StorageGateway(client)
