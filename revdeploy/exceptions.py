"""Errors raised by the deployment workflow."""


class RevDeployError(Exception):
    """Base error. Context fields are kept for the final error message."""

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def __str__(self):
        if not self.context:
            return self.message
        details = ', '.join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(RevDeployError):
    """Config file or deployment request is invalid."""
    pass


class UnknownRevisionSource(ConfigurationError):
    """Revision source is not one of the supported values."""
    pass


class PreconditionError(RevDeployError):
    """A resource the deployment needs does not exist."""
    pass


class ApplicationNotFound(PreconditionError):
    pass


class DeploymentGroupNotFound(PreconditionError):
    pass


class RevisionObjectNotFound(PreconditionError):
    pass


class ArchiveCreationFailed(RevDeployError):
    pass


class UploadFailed(RevDeployError):
    pass


class DeploymentSubmissionFailed(RevDeployError):
    pass


class DeploymentWaitFailed(RevDeployError):
    """Deployment reported failure, or never succeeded within the timeout."""
    pass


class ArchiveCleanupFailed(RevDeployError):
    """Uploaded archive could not be removed from the temp location."""
    pass


class OutputBindingFailed(RevDeployError):
    """Deployment id could not be published for later pipeline stages."""
    pass
