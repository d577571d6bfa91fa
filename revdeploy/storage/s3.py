#!/usr/bin/env python3
"""S3 storage backend for revision bundles."""

from pathlib import Path

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from .base import StorageBackend
from ..deployment.utils import get_client_kwargs
from ..exceptions import UploadFailed

MISSING_OBJECT_CODES = ('404', 'NoSuchKey', 'NotFound')


class S3Storage(StorageBackend):
    """S3 storage backend."""

    def __init__(self, config, client=None):
        self.config = config or {}
        self._client = client

    def _get_client(self):
        """Lazy initialization of boto3 client."""
        if self._client is None:
            self._client = boto3.client('s3', **get_client_kwargs(self.config))
        return self._client

    def _get_s3_url(self, bucket, key):
        return f"s3://{bucket}/{key}"

    def object_exists(self, bucket, key):
        s3_client = self._get_client()
        try:
            s3_client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in MISSING_OBJECT_CODES:
                return False
            raise

    def upload_file(self, local_path, bucket, key, acl=None):
        s3_client = self._get_client()
        s3_url = self._get_s3_url(bucket, key)
        extra_args = {'ACL': acl} if acl else None
        try:
            s3_client.upload_file(str(Path(local_path)), bucket, key, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError, S3UploadFailedError, OSError) as e:
            print(f"ERROR: Bundle upload failed: {e}")
            raise UploadFailed(f"Bundle upload failed: {e}", bucket=bucket, key=key) from e

        return s3_url
