"""
Object storage package.

This package provides the storage backend used to hold revision bundles
before they are handed to the deployment service.
"""

from .base import StorageBackend
from .s3 import S3Storage


def get_storage_backend(config):
    """Factory function to get the storage backend for a config."""
    return S3Storage(config.get('aws', {}))


__all__ = ['StorageBackend', 'S3Storage', 'get_storage_backend']
