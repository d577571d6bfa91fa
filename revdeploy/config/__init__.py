"""
Configuration and request validation package.

This package contains the deployment request model and the JSON schema
validation applied to request files and command line overrides.
"""

__all__ = ['validation', 'request']
