#!/usr/bin/env python3
"""
CodeDeploy service wrapper.
Existence probes, deployment submission and status polling.
"""

from collections import namedtuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .utils import get_client_kwargs
from ..exceptions import DeploymentSubmissionFailed

SUCCEEDED = 'Succeeded'
FAILURE_STATES = ('Failed', 'Stopped')

DeploymentStatus = namedtuple('DeploymentStatus', ['state', 'message'])

APPLICATION_MISSING_CODES = ('ApplicationDoesNotExistException', 'ApplicationNameRequiredException')
GROUP_MISSING_CODES = ('DeploymentGroupDoesNotExistException', 'ApplicationDoesNotExistException')


def _error_code(error):
    return error.response.get('Error', {}).get('Code')


class CodeDeployService:
    """Thin wrapper around the boto3 codedeploy client."""

    def __init__(self, config, client=None):
        self.config = config or {}
        self._client = client

    def _get_client(self):
        """Lazy initialization of boto3 client."""
        if self._client is None:
            self._client = boto3.client('codedeploy', **get_client_kwargs(self.config))
        return self._client

    def application_exists(self, application_name):
        try:
            self._get_client().get_application(applicationName=application_name)
            return True
        except ClientError as e:
            if _error_code(e) in APPLICATION_MISSING_CODES:
                return False
            raise

    def deployment_group_exists(self, application_name, deployment_group_name):
        try:
            self._get_client().get_deployment_group(
                applicationName=application_name,
                deploymentGroupName=deployment_group_name
            )
            return True
        except ClientError as e:
            if _error_code(e) in GROUP_MISSING_CODES:
                return False
            raise

    def create_deployment(self, request, bundle_key, bundle_type):
        """
        Submit a deployment of s3://<bucket>/<bundle_key>.
        Returns the deployment id, or '' when the service did not return one.
        """
        params = {
            'applicationName': request.application_name,
            'deploymentGroupName': request.deployment_group_name,
            'fileExistsBehavior': request.file_exists_behavior,
            'ignoreApplicationStopFailures': request.ignore_application_stop_failures,
            'updateOutdatedInstancesOnly': request.update_outdated_instances_only,
            'revision': {
                'revisionType': 'S3',
                's3Location': {
                    'bucket': request.bucket_name,
                    'key': bundle_key,
                    'bundleType': bundle_type,
                },
            },
        }
        if request.description:
            params['description'] = request.description

        try:
            response = self._get_client().create_deployment(**params)
        except (BotoCoreError, ClientError) as e:
            print(f"ERROR: Deployment request failed: {e}")
            raise DeploymentSubmissionFailed(
                f"Deployment request failed: {e}",
                application=request.application_name,
                group=request.deployment_group_name,
                bucket=request.bucket_name, key=bundle_key
            ) from e

        return response.get('deploymentId') or ''

    def get_deployment_status(self, deployment_id):
        response = self._get_client().get_deployment(deploymentId=deployment_id)
        info = response.get('deploymentInfo', {})
        error_info = info.get('errorInformation') or {}
        return DeploymentStatus(info.get('status'), error_info.get('message'))
