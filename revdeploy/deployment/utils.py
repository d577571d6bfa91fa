#!/usr/bin/env python3
"""
Deployment utilities - shared helper functions.
"""

import copy
import os
import tempfile
from pathlib import Path

import yaml

from ..exceptions import ConfigurationError, OutputBindingFailed

DEFAULT_CONFIG = {
    'aws': {
        'region': 'us-east-1',
        'endpoint_url': None,
        'credentials_env': {},
    },
    'deployment': {
        'temp_dir': None,
        'timeout_minutes': 30,
        'outputs_file': 'bundles/deployment-outputs.yaml',
    },
}


def load_yaml(file_path):
    with open(file_path, 'r') as f:
        return yaml.safe_load(f)


def deep_merge(base, override):
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _read_config_file(path):
    try:
        return load_yaml(path) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error loading {path.name}: {e}", path=str(path)) from e


def load_config(config_path=None):
    """
    Load configuration with optional local overrides.
    - Default: config/deployment-config.yaml (or REVDEPLOY_CONFIG)
    - DEPLOYMENT_ENV=local: merges deployment-config.local.yaml overrides
    Missing files fall back to built-in defaults.
    """
    base_path = Path(config_path or os.environ.get('REVDEPLOY_CONFIG')
                     or Path.cwd() / 'config' / 'deployment-config.yaml')
    config = copy.deepcopy(DEFAULT_CONFIG)
    if base_path.exists():
        config = deep_merge(config, _read_config_file(base_path))

    env = os.environ.get('DEPLOYMENT_ENV', '').strip()
    if env == 'local':
        override_path = base_path.with_name(base_path.stem + '.local' + base_path.suffix)
        if override_path.exists():
            config = deep_merge(config, _read_config_file(override_path))

    return config


def get_client_kwargs(aws_config):
    """
    Build boto3 client keyword arguments from the aws config section.
    Explicit credentials are only passed when the configured env vars are set,
    otherwise boto3 uses its default credential chain.
    """
    kwargs = {'region_name': aws_config.get('region', 'us-east-1')}
    if aws_config.get('endpoint_url'):
        kwargs['endpoint_url'] = aws_config['endpoint_url']

    creds_env = aws_config.get('credentials_env') or {}
    access_key = os.environ.get(creds_env.get('access_key_id', ''))
    secret_key = os.environ.get(creds_env.get('secret_access_key', ''))
    if access_key and secret_key:
        kwargs['aws_access_key_id'] = access_key
        kwargs['aws_secret_access_key'] = secret_key
        session_token = os.environ.get(creds_env.get('session_token', ''))
        if session_token:
            kwargs['aws_session_token'] = session_token

    return kwargs


def get_temp_location(config):
    """Process-scoped directory for archives created during this run."""
    temp_dir = (config['deployment'].get('temp_dir')
                or os.environ.get('REVDEPLOY_TEMP_DIR')
                or tempfile.gettempdir())
    path = Path(temp_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create temp directory {path}: {e}", path=str(path)) from e
    return path


def set_output_variable(name, value, outputs_file):
    """
    Publish a value for later pipeline stages.
    Merges name: value into the YAML outputs file, and appends to GITHUB_OUTPUT when set.
    """
    if not name:
        return

    outputs_path = Path(outputs_file)
    try:
        outputs = {}
        if outputs_path.exists():
            outputs = load_yaml(outputs_path) or {}
        if not isinstance(outputs, dict):
            raise OutputBindingFailed(f"Outputs file must contain a mapping: {outputs_path}",
                                      path=str(outputs_path))
        outputs[name] = value

        outputs_path.parent.mkdir(exist_ok=True, parents=True)
        with open(outputs_path, 'w') as f:
            yaml.dump(outputs, f, default_flow_style=False)
        print(f"Saved output variable {name}: {outputs_path}")

        github_output = os.environ.get('GITHUB_OUTPUT')
        if github_output:
            with open(github_output, 'a') as f:
                f.write(f"{name}={value}\n")
    except (OSError, yaml.YAMLError) as e:
        raise OutputBindingFailed(f"Failed to save output variable {name}: {e}",
                                  path=str(outputs_path)) from e
