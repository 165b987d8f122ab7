"""Shared domain models for dumbrouter-ops."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from . import constants


@dataclass(frozen=True)
class FixtureSettings:
    """Naming, port and image conventions for dummy-server fixtures."""

    prefix: str = constants.FIXTURE_PREFIX
    image: str = constants.FIXTURE_IMAGE
    base_port: int = constants.FIXTURE_BASE_PORT
    id_width: int = constants.FIXTURE_ID_WIDTH
    container_port: int = constants.FIXTURE_CONTAINER_PORT
    env_var: str = constants.FIXTURE_ENV_VAR
    ready_timeout: float = constants.FIXTURE_READY_TIMEOUT

    @property
    def max_instance_id(self) -> int:
        return 10 ** self.id_width - 1


@dataclass(frozen=True)
class ReleaseSettings:
    """Fixed parameters of the router image release."""

    repository: str = constants.RELEASE_REPOSITORY
    tag: str = constants.RELEASE_TAG
    platforms: Tuple[str, ...] = constants.RELEASE_PLATFORMS
    context: str = constants.RELEASE_CONTEXT
    dockerfile: str = constants.RELEASE_DOCKERFILE
    verify: bool = True


@dataclass(frozen=True)
class FixtureInstance:
    """Everything derived from a fixture instance id."""

    instance_id: int
    container_name: str
    host_port: int
    container_port: int
    image: str
    environment: Dict[str, str] = field(default_factory=dict)

    @property
    def service_name(self) -> str:
        if self.container_name.startswith(constants.ROUTER_BACKEND_PREFIX):
            return self.container_name[len(constants.ROUTER_BACKEND_PREFIX):]
        return self.container_name

    @property
    def port_mapping(self) -> str:
        return f"{self.host_port}:{self.container_port}"


@dataclass(frozen=True)
class RunningFixture:
    """Handle for a fixture container started by the provisioner."""

    fixture: FixtureInstance
    container_id: str
    replaced: bool = False

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.fixture.host_port}/"


@dataclass(frozen=True)
class FixtureStatus:
    """A fixture container as reported by the runtime."""

    container_name: str
    state: str
    ports: str


@dataclass(frozen=True)
class ReleaseBuild:
    """A single multi-platform build-and-push request."""

    repository: str
    tag: str
    platforms: Tuple[str, ...]
    context: str
    dockerfile: str = constants.RELEASE_DOCKERFILE
    output_type: str = constants.RELEASE_OUTPUT_TYPE
    push: bool = True

    @property
    def image_reference(self) -> str:
        return f"{self.repository}:{self.tag}"


@dataclass(frozen=True)
class PublishResult:
    """Outcome of a successful release publish."""

    image_reference: str
    digest: Optional[str]
    platforms: Tuple[str, ...]
    duration_seconds: float
