"""
Revision deployment tooling.

Packages a local bundle (or references one already in S3), submits it to
CodeDeploy and waits for the deployment to finish.
"""

__version__ = '0.1.0'

__all__ = ['config', 'storage', 'deployment', 'exceptions']
