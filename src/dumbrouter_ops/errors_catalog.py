"""Actionable error catalog for dumbrouter-ops."""

import re
from typing import Dict, List, Optional, Tuple, Type

from .errors import (
    BuilderUnavailableError,
    BuildFailedError,
    ImageNotFoundError,
    OpsError,
    RegistryAuthError,
    ResourceCollisionError,
    RuntimeUnavailableError,
)

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "invalid_instance_id": {
        "what": "Invalid fixture instance id '{value}'.",
        "next": "Use a decimal number between 0 and {maximum}.",
    },
    "runtime_unavailable": {
        "what": "The Docker daemon is not reachable.",
        "next": "Start Docker and make sure the current user may manage containers.",
    },
    "image_not_found": {
        "what": "The fixture image is not available locally.",
        "next": "Build or pull the image before provisioning; fixtures never pull images.",
    },
    "resource_collision": {
        "what": "A host port or container name is already in use.",
        "next": "Stop whatever holds it or pick another fixture instance id.",
    },
    "builder_unavailable": {
        "what": "docker buildx cannot build the release.",
        "next": "Install the buildx plugin and select a builder that supports multiple platforms.",
    },
    "registry_auth": {
        "what": "The registry rejected the push for '{reference}'.",
        "next": "Run `docker login` for the registry and retry the release.",
    },
    "build_failed": {
        "what": "Multi-platform build of '{reference}' failed. Nothing was pushed.",
        "next": "Fix the build error shown above and run the release again from the start.",
    },
    "missing_dockerfile": {
        "what": "No {dockerfile} found in build context '{context}'.",
        "next": "Run the release from the router source tree.",
    },
    "platform_missing": {
        "what": "'{reference}' does not resolve for: {platforms}.",
        "next": "Check the registry for a concurrent push and run the release again.",
    },
}


def actionable_error(code: str, **kwargs) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"


# Ordered: the first matching pattern decides the error class.
_FAILURE_PATTERNS: List[Tuple[re.Pattern, Type[OpsError]]] = [
    (re.compile(r"cannot connect to the docker daemon", re.I), RuntimeUnavailableError),
    (re.compile(r"permission denied while trying to connect", re.I), RuntimeUnavailableError),
    (re.compile(r"is the docker daemon running", re.I), RuntimeUnavailableError),
    (re.compile(r"no such image|unable to find image|pull access denied", re.I), ImageNotFoundError),
    (re.compile(r"port is already allocated|address already in use", re.I), ResourceCollisionError),
    (re.compile(r"is already in use by container", re.I), ResourceCollisionError),
    (re.compile(r"'buildx' is not a docker command|unknown command: docker buildx", re.I), BuilderUnavailableError),
    (re.compile(r"multiple platforms feature is currently not supported", re.I), BuilderUnavailableError),
    (re.compile(r"no builder .* found|failed to find driver", re.I), BuilderUnavailableError),
    (
        re.compile(
            r"unauthorized|authentication required|denied: requested access|insufficient_scope",
            re.I,
        ),
        RegistryAuthError,
    ),
    (re.compile(r"failed to solve|failed to build|error: .*did not complete successfully", re.I), BuildFailedError),
]


_CLASS_CODES: Dict[Type[OpsError], str] = {
    RuntimeUnavailableError: "runtime_unavailable",
    ImageNotFoundError: "image_not_found",
    ResourceCollisionError: "resource_collision",
}


def classify_failure(output: Optional[str]) -> Type[OpsError]:
    """Map docker/buildx diagnostic text to the matching error class."""
    text = output or ""
    for pattern, error_class in _FAILURE_PATTERNS:
        if pattern.search(text):
            return error_class
    return OpsError


def failure_error(output: Optional[str], message: str) -> OpsError:
    """Build the classified error, keeping the toolchain's text verbatim."""
    error_class = classify_failure(output)
    if error_class in _CLASS_CODES:
        message = f"{message}. {actionable_error(_CLASS_CODES[error_class])}"
    diagnostic = (output or "").strip()
    if diagnostic:
        message = f"{message}\n{diagnostic}"
    return error_class(message)
