"""Domain errors for dumbrouter-ops."""


class OpsError(RuntimeError):
    """Raised when a fixture or release operation cannot continue."""


class InvalidInstanceIdError(OpsError):
    """The fixture instance id cannot be mapped to a container name and port."""


class RuntimeUnavailableError(OpsError):
    """The docker CLI or daemon cannot be reached."""


class BuilderUnavailableError(OpsError):
    """docker buildx is missing or cannot build for the requested platforms."""


class RegistryAuthError(OpsError):
    """The registry rejected the push credentials."""


class ImageNotFoundError(OpsError):
    """The fixture image is not present locally."""


class ResourceCollisionError(OpsError):
    """A host port or container name is held by something else."""


class BuildFailedError(OpsError):
    """The multi-platform build aborted before anything was pushed."""


class PublishVerificationError(OpsError):
    """The pushed manifest does not resolve for every requested platform."""
