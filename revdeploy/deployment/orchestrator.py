#!/usr/bin/env python3
"""
Revision Deployment Orchestrator
Packages a revision bundle, uploads it to S3 and deploys it with CodeDeploy
"""

import argparse
import os
import sys
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from .archive import create_deployment_archive, infer_archive_type
from .service import CodeDeployService
from .utils import load_config, get_temp_location, set_output_variable
from .waiter import max_attempts_for_timeout, wait_for_deployment_success
from ..config.request import DEFAULT_TIMEOUT_MINUTES, DeploymentRequest, RevisionSource
from ..config.validation import load_request_file, validate_request
from ..exceptions import (
    ApplicationNotFound, ArchiveCleanupFailed, ConfigurationError, DeploymentGroupNotFound,
    OutputBindingFailed, RevDeployError, RevisionObjectNotFound
)
from ..storage import get_storage_backend


def _print_phase(phase_num, phase_name, application_name=None):
    """Helper to print phase headers."""
    print(f"\n{'='*60}")
    if phase_num is None:
        print(phase_name)
    elif application_name:
        print(f"PHASE {phase_num}: {phase_name} ({application_name})")
    else:
        print(f"PHASE {phase_num}: {phase_name}")
    print(f"{'='*60}")


def _require(probe, error):
    """Raise error when probe() is false or the probe call itself fails."""
    try:
        exists = probe()
    except (BotoCoreError, ClientError) as e:
        raise error from e
    if not exists:
        raise error


def check_revision_location(request):
    """Each revision source needs its own location field."""
    if request.revision_source is RevisionSource.WORKSPACE and not request.revision_bundle:
        raise ConfigurationError("revision_bundle is required for the workspace revision source",
                                 application=request.application_name)
    if request.revision_source is RevisionSource.S3 and not request.bundle_key:
        raise ConfigurationError("bundle_key is required for the s3 revision source",
                                 application=request.application_name, bucket=request.bucket_name)


def bundle_key_for(archive_path, bundle_prefix=None):
    """Object key for an uploaded archive: [prefix/]basename."""
    bundle_filename = Path(archive_path).name
    if bundle_prefix:
        return f"{bundle_prefix}/{bundle_filename}"
    return bundle_filename


class DeploymentOrchestrator:
    """Runs a single deployment: checks, upload, submit, wait."""

    def __init__(self, deploy_service, storage, config, sleep=None):
        self.deploy_service = deploy_service
        self.storage = storage
        self.config = config
        self.sleep = sleep

    def execute(self, request):
        """Deploy the requested revision and return the deployment id."""
        check_revision_location(request)
        _print_phase(1, "VERIFY RESOURCES", request.application_name)
        self.verify_resources_exist(request)

        if request.revision_source is RevisionSource.WORKSPACE:
            _print_phase(2, "UPLOAD BUNDLE", request.application_name)
            bundle_key = self.upload_bundle(request)
        else:
            bundle_key = request.bundle_key

        _print_phase(3, "DEPLOY REVISION", request.application_name)
        deployment_id = self.deploy_revision(request, bundle_key)

        if request.output_variable:
            print(f"Setting output variable {request.output_variable} with the deployment id")
            try:
                set_output_variable(request.output_variable, deployment_id,
                                    self.config['deployment']['outputs_file'])
            except OutputBindingFailed as e:
                e.context['deployment_id'] = deployment_id
                raise

        _print_phase(4, "WAIT FOR COMPLETION", request.application_name)
        self.wait_for_deployment_completion(request, deployment_id)

        print(f"\n[OK] Deployment to application {request.application_name} completed")
        return deployment_id

    def verify_resources_exist(self, request):
        app = request.application_name
        group = request.deployment_group_name

        print(f"Checking application {app}...")
        _require(
            lambda: self.deploy_service.application_exists(app),
            ApplicationNotFound(f"Application {app} does not exist", application=app)
        )

        print(f"Checking deployment group {group}...")
        _require(
            lambda: self.deploy_service.deployment_group_exists(app, group),
            DeploymentGroupNotFound(
                f"Deployment group {group} does not exist for application {app}",
                application=app, group=group
            )
        )

        if request.revision_source is RevisionSource.S3:
            bucket, key = request.bucket_name, request.bundle_key
            print(f"Checking revision bundle s3://{bucket}/{key}...")
            _require(
                lambda: self.storage.object_exists(bucket, key),
                RevisionObjectNotFound(
                    f"Revision bundle {key} does not exist in bucket {bucket}",
                    bucket=bucket, key=key
                )
            )
        print("[OK] Resources verified")

    def upload_bundle(self, request):
        """
        Upload the workspace bundle, archiving it first when it is a folder.
        An archive created here is removed once the upload succeeds; on failure
        it is left in place for inspection.
        """
        bundle_path = Path(request.revision_bundle)
        auto_created = False
        if bundle_path.is_dir():
            archive_path = create_deployment_archive(
                bundle_path, request.application_name, get_temp_location(self.config)
            )
            auto_created = True
        elif bundle_path.is_file():
            archive_path = bundle_path
        else:
            raise ConfigurationError(f"Revision bundle not found: {bundle_path}",
                                     application=request.application_name)

        key = bundle_key_for(archive_path, request.bundle_prefix)
        print(f"Uploading bundle {archive_path} to key {key} in bucket {request.bucket_name}")
        self.storage.upload_file(archive_path, request.bucket_name, key, acl=request.upload_acl)
        print("[OK] Bundle upload completed")

        if auto_created:
            print(f"Deleting uploaded bundle archive {archive_path}")
            try:
                os.remove(archive_path)
            except OSError as e:
                raise ArchiveCleanupFailed(
                    f"Failed to delete uploaded bundle archive: {e}", archive=str(archive_path)
                ) from e

        return key

    def deploy_revision(self, request, bundle_key):
        print("Deploying revision")

        # use the key, revision_bundle may point at a folder
        archive_type = infer_archive_type(bundle_key)
        print(f"Archive type {archive_type} (from key {bundle_key})")

        deployment_id = self.deploy_service.create_deployment(request, bundle_key, archive_type)
        print(f"[OK] Deployment to group {request.deployment_group_name} of application "
              f"{request.application_name} started, deployment id: {deployment_id}")
        if not deployment_id:
            print("WARNING: Service returned no deployment id")
        return deployment_id

    def wait_for_deployment_completion(self, request, deployment_id):
        timeout = request.timeout_minutes
        if timeout != DEFAULT_TIMEOUT_MINUTES:
            print(f"Using custom timeout of {timeout} minutes")
        max_attempts = max_attempts_for_timeout(timeout)

        print(f"Waiting for deployment {deployment_id} to complete...")
        kwargs = {'sleep': self.sleep} if self.sleep else {}
        wait_for_deployment_success(
            self.deploy_service, request.application_name, deployment_id, max_attempts, **kwargs
        )
        print("[OK] Deployment succeeded")


def build_request_values(args, config):
    """Merge request file values with command line overrides."""
    values = {}
    if args.request:
        values.update(load_request_file(args.request))

    for name in REQUEST_OPTIONS:
        value = getattr(args, name, None)
        if value is not None:
            values[name] = value

    if 'timeout_minutes' not in values:
        values['timeout_minutes'] = config['deployment'].get('timeout_minutes', DEFAULT_TIMEOUT_MINUTES)
    return values


def load_request(args, config):
    values = validate_request(build_request_values(args, config))
    return DeploymentRequest.from_dict(values)


def create_orchestrator(config):
    return DeploymentOrchestrator(
        CodeDeployService(config.get('aws', {})), get_storage_backend(config), config
    )


def deploy_command(args):
    """One-shot deployment: verify -> upload -> deploy -> wait."""
    config = load_config(args.config)
    request = load_request(args, config)
    create_orchestrator(config).execute(request)


def validate_command(args):
    """Validate the request and check the target resources exist."""
    _print_phase(None, "VALIDATING DEPLOYMENT PREREQUISITES")
    config = load_config(args.config)
    request = load_request(args, config)
    print("[OK] Deployment request is valid")
    create_orchestrator(config).verify_resources_exist(request)


def _str2bool(value):
    if value.lower() in ('true', 'yes', '1'):
        return True
    if value.lower() in ('false', 'no', '0'):
        return False
    raise argparse.ArgumentTypeError(f"Expected a boolean, got '{value}'")


REQUEST_OPTIONS = {
    'application_name': {'help': 'CodeDeploy application name'},
    'deployment_group_name': {'help': 'Deployment group within the application'},
    'revision_source': {'type': str.lower, 'choices': ['workspace', 's3'],
                        'help': 'Where the revision bundle comes from'},
    'revision_bundle': {'help': 'Local folder or archive file (workspace source)'},
    'bucket_name': {'help': 'S3 bucket holding the revision'},
    'bundle_key': {'help': 'Key of an already uploaded bundle (s3 source)'},
    'bundle_prefix': {'help': 'Key prefix for uploaded bundles'},
    'files_acl': {'help': "Canned ACL for the uploaded bundle, or 'none'"},
    'file_exists_behavior': {'choices': ['DISALLOW', 'OVERWRITE', 'RETAIN']},
    'ignore_application_stop_failures': {'type': _str2bool, 'metavar': 'BOOL'},
    'update_outdated_instances_only': {'type': _str2bool, 'metavar': 'BOOL'},
    'description': {'help': 'Deployment description'},
    'output_variable': {'help': 'Name to publish the deployment id under'},
    'timeout_minutes': {'type': float, 'help': f'Wait timeout (default {DEFAULT_TIMEOUT_MINUTES})'},
}


def build_parser():
    parser = argparse.ArgumentParser(
        description='Revision Deployment Orchestrator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Deploy a local folder
  revdeploy deploy --application-name web --deployment-group-name prod \\
      --revision-source workspace --revision-bundle ./build --bucket-name my-bundles

  # Deploy from a request file, overriding the timeout
  revdeploy deploy --request requests/web.yaml --timeout-minutes 10

  # Check the request and the target resources only
  revdeploy validate --request requests/web.yaml
        """
    )
    parser.add_argument('command', choices=['deploy', 'validate'], help='Command to run')
    parser.add_argument('--request', help='Deployment request YAML file')
    parser.add_argument('--config', help='Deployment config file (default config/deployment-config.yaml)')
    for name, options in REQUEST_OPTIONS.items():
        parser.add_argument('--' + name.replace('_', '-'), dest=name, **options)
    return parser


def main(argv=None):
    """Main entry point - parse command line and run the command."""
    args = build_parser().parse_args(argv)
    try:
        if args.command == 'deploy':
            deploy_command(args)
        elif args.command == 'validate':
            validate_command(args)
    except RevDeployError as e:
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
