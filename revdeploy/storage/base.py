#!/usr/bin/env python3
"""
Base storage backend interface for revision bundles.
"""


class StorageBackend:
    """Base interface for storage backends."""

    def object_exists(self, bucket, key):
        """Return True when the object is present in the store."""
        raise NotImplementedError

    def upload_file(self, local_path, bucket, key, acl=None):
        """Upload local file to the store, returns its URL."""
        raise NotImplementedError
