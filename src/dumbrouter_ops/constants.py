"""Default values for fixture provisioning and release builds."""

FIXTURE_PREFIX = "http-dummyserver"
FIXTURE_IMAGE = "dummyserver"
FIXTURE_BASE_PORT = 8090
FIXTURE_ID_WIDTH = 1
FIXTURE_CONTAINER_PORT = 80
FIXTURE_ENV_VAR = "NUMBER"
FIXTURE_READY_TIMEOUT = 0.0

# dumbrouter discovers backends whose container names start with this prefix.
ROUTER_BACKEND_PREFIX = "http-"

RELEASE_REPOSITORY = "viomckinney/dumbrouter"
RELEASE_TAG = "latest"
RELEASE_PLATFORMS = ("linux/arm64", "linux/amd64")
RELEASE_CONTEXT = "."
RELEASE_DOCKERFILE = "Dockerfile"
RELEASE_OUTPUT_TYPE = "image"

MAX_PORT = 65535
CONFIG_ENV_VAR = "DUMBROUTER_OPS_CONFIG"
DEFAULT_CONFIG_FILE = ".dumbrouter-ops.yml"
