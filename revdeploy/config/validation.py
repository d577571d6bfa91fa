#!/usr/bin/env python3
"""
Deployment Request Validation
Validates request files and command line values against the JSON schema
"""

import json
from pathlib import Path

import jsonschema
import yaml

from ..exceptions import ConfigurationError

SCHEMA_FILE = Path(__file__).parent.parent / 'schemas' / 'deployment-request-schema.json'


def load_yaml(file_path):
    """Load YAML file safely."""
    try:
        with open(file_path, 'r') as f:
            return yaml.safe_load(f), None
    except yaml.YAMLError as e:
        return None, str(e)
    except OSError as e:
        return None, str(e)


def load_schema(schema_file=SCHEMA_FILE):
    try:
        with open(schema_file, 'r') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Error loading schema file: {e}", schema=str(schema_file))


def validate_against_schema(values, schema=None):
    """
    Validate request values against the JSON schema.
    Returns (is_valid, errors_list)
    """
    if schema is None:
        schema = load_schema()

    validator = jsonschema.Draft7Validator(schema)
    errors = []
    for e in sorted(validator.iter_errors(values), key=lambda err: [str(p) for p in err.path]):
        error_path = ' -> '.join(str(p) for p in e.path) if e.path else 'root'
        errors.append(f"Schema validation failed at '{error_path}': {e.message}")
    return len(errors) == 0, errors


def load_request_file(request_file):
    """Load a request YAML file, returns its mapping."""
    request_path = Path(request_file)
    if not request_path.exists():
        raise ConfigurationError(f"Request file not found: {request_file}")

    values, err = load_yaml(request_path)
    if err:
        raise ConfigurationError(f"YAML syntax error in {request_file}: {err}")
    if not values:
        raise ConfigurationError(f"Request file is empty: {request_file}")
    if not isinstance(values, dict):
        raise ConfigurationError(f"Request file must contain a mapping: {request_file}")
    return values


def normalize_request(values):
    """Lowercase revision_source so the per-source schema rules apply to any spelling."""
    values = dict(values)
    source = values.get('revision_source')
    if isinstance(source, str):
        values['revision_source'] = source.strip().lower()
    return values


def validate_request(values):
    """Validate a merged request mapping and raise with every error found."""
    values = normalize_request(values)
    is_valid, errors = validate_against_schema(values)
    if not is_valid:
        raise ConfigurationError(
            "Deployment request validation failed:\n" + '\n'.join(f"  - {e}" for e in errors)
        )
    return values
