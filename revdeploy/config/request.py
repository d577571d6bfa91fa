#!/usr/bin/env python3
"""
Deployment request model.
Built once per run from validated request values and never changed afterwards.
"""

from collections import namedtuple
from enum import Enum

from ..exceptions import UnknownRevisionSource

DEFAULT_TIMEOUT_MINUTES = 30
DEFAULT_FILE_EXISTS_BEHAVIOR = 'DISALLOW'
NO_ACL = 'none'


class RevisionSource(Enum):
    WORKSPACE = 'workspace'
    S3 = 's3'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownRevisionSource(
                f"Unknown revision source '{value}' (must be 'workspace' or 's3')"
            ) from None


_REQUEST_FIELDS = [
    "application_name", "deployment_group_name", "revision_source", "bucket_name",
    "revision_bundle", "bundle_key", "bundle_prefix", "files_acl", "file_exists_behavior",
    "ignore_application_stop_failures", "update_outdated_instances_only", "description",
    "output_variable", "timeout_minutes",
]


class DeploymentRequest(namedtuple("DeploymentRequest", _REQUEST_FIELDS, defaults=(
        None, None, None, None, DEFAULT_FILE_EXISTS_BEHAVIOR,
        False, False, None, None, DEFAULT_TIMEOUT_MINUTES))):
    """
    One deployment, immutable once built.

    Fields:
        application_name, deployment_group_name: CodeDeploy target
        revision_source: RevisionSource.WORKSPACE or RevisionSource.S3
        bucket_name: bucket the revision is uploaded to or read from
        revision_bundle: local folder or archive file (workspace source)
        bundle_key: key of an already uploaded bundle (s3 source)
        bundle_prefix: key prefix for uploaded bundles, optional
        files_acl: canned ACL for the upload, or 'none'
        file_exists_behavior: DISALLOW, OVERWRITE or RETAIN
        ignore_application_stop_failures, update_outdated_instances_only: service flags
        description: free-text deployment description, optional
        output_variable: name to publish the deployment id under, optional
        timeout_minutes: wait timeout, turned into poll attempts
    """

    __slots__ = ()

    @property
    def upload_acl(self):
        """Canned ACL to apply on upload, or None when unset or 'none'."""
        if self.files_acl and self.files_acl != NO_ACL:
            return self.files_acl
        return None

    @classmethod
    def from_dict(cls, values):
        """Build a request from a validated snake_case mapping."""
        timeout = values.get('timeout_minutes')
        return cls(
            application_name=values['application_name'],
            deployment_group_name=values['deployment_group_name'],
            revision_source=RevisionSource.parse(values.get('revision_source', 'workspace')),
            bucket_name=values['bucket_name'],
            revision_bundle=values.get('revision_bundle'),
            bundle_key=values.get('bundle_key'),
            bundle_prefix=values.get('bundle_prefix') or None,
            files_acl=values.get('files_acl'),
            file_exists_behavior=values.get('file_exists_behavior') or DEFAULT_FILE_EXISTS_BEHAVIOR,
            ignore_application_stop_failures=bool(values.get('ignore_application_stop_failures', False)),
            update_outdated_instances_only=bool(values.get('update_outdated_instances_only', False)),
            description=values.get('description') or None,
            output_variable=values.get('output_variable') or None,
            timeout_minutes=DEFAULT_TIMEOUT_MINUTES if timeout is None else timeout,
        )
