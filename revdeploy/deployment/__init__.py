"""
Deployment package.

This package contains modules for archiving revision bundles, submitting
deployments and waiting for them to complete.
"""

__all__ = ['orchestrator', 'archive', 'service', 'waiter', 'utils']
