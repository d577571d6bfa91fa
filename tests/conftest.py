"""
Pytest configuration and shared fakes for revdeploy tests.
"""

import pytest

from revdeploy.config.request import DeploymentRequest, RevisionSource
from revdeploy.deployment.service import DeploymentStatus
from revdeploy.deployment.utils import DEFAULT_CONFIG, deep_merge
from revdeploy.exceptions import UploadFailed


class FakeDeployService:
    """Records calls; statuses are returned in order, the last one repeats."""

    def __init__(self, applications=('app',), groups=(('app', 'group'),),
                 statuses=('Succeeded',), deployment_id='d-123456'):
        self.applications = set(applications)
        self.groups = set(groups)
        self.statuses = [s if isinstance(s, DeploymentStatus) else DeploymentStatus(s, None)
                         for s in statuses]
        self.deployment_id = deployment_id
        self.created = []
        self.polled = []

    def application_exists(self, name):
        return name in self.applications

    def deployment_group_exists(self, app, group):
        return (app, group) in self.groups

    def create_deployment(self, request, bundle_key, bundle_type):
        self.created.append((request, bundle_key, bundle_type))
        return self.deployment_id

    def get_deployment_status(self, deployment_id):
        self.polled.append(deployment_id)
        index = min(len(self.polled), len(self.statuses)) - 1
        return self.statuses[index]


class FakeStorage:
    def __init__(self, objects=(), fail_upload=False):
        self.objects = set(objects)
        self.fail_upload = fail_upload
        self.uploads = []

    def object_exists(self, bucket, key):
        return (bucket, key) in self.objects

    def upload_file(self, local_path, bucket, key, acl=None):
        if self.fail_upload:
            raise UploadFailed("Bundle upload failed: access denied", bucket=bucket, key=key)
        self.uploads.append({'path': local_path, 'bucket': bucket, 'key': key, 'acl': acl,
                             'exists_during_upload': local_path.exists()})
        self.objects.add((bucket, key))
        return f"s3://{bucket}/{key}"


@pytest.fixture
def config(tmp_path):
    temp_dir = tmp_path / "temp"
    return deep_merge(DEFAULT_CONFIG, {
        'deployment': {
            'temp_dir': str(temp_dir),
            'outputs_file': str(tmp_path / "outputs" / "deployment-outputs.yaml"),
        }
    })


@pytest.fixture
def bundle_dir(tmp_path):
    root = tmp_path / "bundle"
    (root / "scripts").mkdir(parents=True)
    (root / "appspec.yml").write_text("version: 0.0\nos: linux\n")
    (root / "scripts" / "start.sh").write_text("#!/bin/sh\necho start\n")
    (root / "index.html").write_text("<html></html>")
    return root


@pytest.fixture
def make_request():
    def _make(**overrides):
        values = {
            'application_name': 'app',
            'deployment_group_name': 'group',
            'revision_source': RevisionSource.WORKSPACE,
            'bucket_name': 'bundles',
        }
        values.update(overrides)
        return DeploymentRequest(**values)
    return _make


@pytest.fixture
def no_sleep():
    calls = []
    def _sleep(seconds):
        calls.append(seconds)
    _sleep.calls = calls
    return _sleep
