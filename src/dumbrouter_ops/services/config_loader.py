"""Configuration loader for dumbrouter-ops."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from dumbrouter_ops import constants
from dumbrouter_ops.errors import OpsError
from dumbrouter_ops.models import FixtureSettings, ReleaseSettings


class ConfigLoader:
    """Loads the optional YAML configuration file and builds settings from it."""

    SUPPORTED_KEYS = {
        "verbose",
        "log_file",
        "fixture_prefix",
        "fixture_image",
        "fixture_base_port",
        "fixture_id_width",
        "fixture_container_port",
        "fixture_env_var",
        "fixture_ready_timeout",
        "release_repository",
        "release_tag",
        "release_platforms",
        "release_context",
        "release_dockerfile",
        "release_verify",
    }

    def resolve_path(self, environ=None, cwd: Optional[str] = None) -> Optional[str]:
        environ = os.environ if environ is None else environ
        explicit = environ.get(constants.CONFIG_ENV_VAR)
        if explicit:
            return explicit

        default_path = os.path.join(cwd or os.getcwd(), constants.DEFAULT_CONFIG_FILE)
        if os.path.exists(default_path):
            return default_path
        return None

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise OpsError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise OpsError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise OpsError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise OpsError(f"Unknown configuration keys: {unknown_list}")

        return parsed

    def verbose(self, config: Dict[str, Any]) -> bool:
        return self._bool(config, "verbose", False)

    def fixture_settings(self, config: Dict[str, Any]) -> FixtureSettings:
        settings = FixtureSettings(
            prefix=str(config.get("fixture_prefix", constants.FIXTURE_PREFIX)),
            image=str(config.get("fixture_image", constants.FIXTURE_IMAGE)),
            base_port=self._int(config, "fixture_base_port", constants.FIXTURE_BASE_PORT),
            id_width=self._int(config, "fixture_id_width", constants.FIXTURE_ID_WIDTH),
            container_port=self._int(
                config, "fixture_container_port", constants.FIXTURE_CONTAINER_PORT
            ),
            env_var=str(config.get("fixture_env_var", constants.FIXTURE_ENV_VAR)),
            ready_timeout=self._float(
                config, "fixture_ready_timeout", constants.FIXTURE_READY_TIMEOUT
            ),
        )

        if not settings.prefix or not settings.image or not settings.env_var:
            raise OpsError("fixture_prefix, fixture_image and fixture_env_var must not be empty.")
        if settings.id_width < 1:
            raise OpsError("fixture_id_width must be at least 1.")
        if settings.base_port < 1 or settings.base_port + settings.max_instance_id > constants.MAX_PORT:
            raise OpsError(
                f"fixture_base_port {settings.base_port} with width {settings.id_width} "
                f"does not fit below port {constants.MAX_PORT}."
            )
        if not 1 <= settings.container_port <= constants.MAX_PORT:
            raise OpsError(f"fixture_container_port must be between 1 and {constants.MAX_PORT}.")
        if settings.ready_timeout < 0:
            raise OpsError("fixture_ready_timeout must not be negative.")
        return settings

    def release_settings(self, config: Dict[str, Any]) -> ReleaseSettings:
        platforms = config.get("release_platforms", list(constants.RELEASE_PLATFORMS))
        if isinstance(platforms, str):
            platforms = [item.strip() for item in platforms.split(",")]
        if not isinstance(platforms, (list, tuple)) or not platforms:
            raise OpsError("release_platforms must be a non-empty list.")

        settings = ReleaseSettings(
            repository=str(config.get("release_repository", constants.RELEASE_REPOSITORY)),
            tag=str(config.get("release_tag", constants.RELEASE_TAG)),
            platforms=tuple(str(item) for item in platforms if str(item)),
            context=str(config.get("release_context", constants.RELEASE_CONTEXT)),
            dockerfile=str(config.get("release_dockerfile", constants.RELEASE_DOCKERFILE)),
            verify=self._bool(config, "release_verify", True),
        )
        if not settings.repository or not settings.tag:
            raise OpsError("release_repository and release_tag must not be empty.")
        return settings

    @staticmethod
    def _int(config: Dict[str, Any], key: str, default: int) -> int:
        value = config.get(key, default)
        if isinstance(value, bool):
            raise OpsError(f"{key} must be an integer.")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise OpsError(f"{key} must be an integer.") from exc

    @staticmethod
    def _float(config: Dict[str, Any], key: str, default: float) -> float:
        value = config.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise OpsError(f"{key} must be a number.") from exc

    @staticmethod
    def _bool(config: Dict[str, Any], key: str, default: bool) -> bool:
        value = config.get(key, default)
        if not isinstance(value, bool):
            raise OpsError(f"{key} must be true or false.")
        return value
