"""Docker CLI container driver for fixture provisioning."""

import json
from typing import Callable, Dict, List

from dumbrouter_ops.errors import OpsError
from dumbrouter_ops.errors_catalog import failure_error
from dumbrouter_ops.models import FixtureStatus


class DockerCliDriver:
    """Manages fixture containers through the ``docker`` command line.

    Any object exposing ``remove_container``, ``run_container`` and
    ``list_containers`` with the same signatures can stand in for it.
    """

    NOT_FOUND_MARKER = "no such container"

    def __init__(self, logger, run_cmd: Callable):
        self.logger = logger
        self.run_cmd = run_cmd

    def remove_container(self, name: str) -> bool:
        """Force-remove ``name``. Returns False when it did not exist."""
        result = self.run_cmd(
            ["docker", "rm", "--force", name],
            check=False,
            capture_output=True,
        )
        if result.returncode == 0:
            return bool((result.stdout or "").strip())

        stderr = (result.stderr or "").strip()
        if self.NOT_FOUND_MARKER in stderr.lower():
            self.logger.debug("No existing container named %s", name)
            return False

        raise failure_error(stderr, f"Could not remove container {name}")

    def run_container(
        self,
        name: str,
        image: str,
        environment: Dict[str, str],
        ports: Dict[int, int],
    ) -> str:
        """Start a detached container and return its id."""
        cmd = ["docker", "run", "--detach", "--pull", "never", "--name", name]
        for key, value in environment.items():
            cmd += ["--env", f"{key}={value}"]
        for host_port, container_port in ports.items():
            cmd += ["--publish", f"{host_port}:{container_port}"]
        cmd.append(image)

        result = self.run_cmd(cmd, check=False, capture_output=True)
        if result.returncode != 0:
            raise failure_error(result.stderr, f"Could not start container {name}")

        container_id = (result.stdout or "").strip().splitlines()
        if not container_id:
            raise OpsError(f"docker run did not report a container id for {name}")
        return container_id[-1]

    def list_containers(self, name_prefix: str) -> List[FixtureStatus]:
        result = self.run_cmd(
            [
                "docker",
                "ps",
                "--all",
                "--filter",
                f"name=^{name_prefix}",
                "--format",
                "{{json .}}",
            ],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            raise failure_error(result.stderr, "Could not list containers")

        statuses = []
        for line in (result.stdout or "").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except ValueError:
                self.logger.warning("Ignoring unparsable docker ps line: %s", line)
                continue

            name = str(row.get("Names", "")).lstrip("/")
            if not name.startswith(name_prefix):
                continue
            statuses.append(
                FixtureStatus(
                    container_name=name,
                    state=str(row.get("State", "")),
                    ports=str(row.get("Ports", "")),
                )
            )
        return sorted(statuses, key=lambda status: status.container_name)
