import logging
from typing import List, Optional, Union

from rich.console import Console

from .errors import InvalidInstanceIdError
from .errors_catalog import actionable_error
from .models import FixtureInstance, FixtureSettings, FixtureStatus, RunningFixture
from .services.command_runner import CommandRunner
from .services.container_driver import DockerCliDriver
from .services.readiness import ReadinessProbe

console = Console()
logger = logging.getLogger("dumbrouter_ops")


class FixtureProvisioner:
    """Replaces and launches numbered dummy-server containers.

    Instance ``n`` always maps to container ``<prefix>-n`` on host port
    ``base_port + n``. Provisioning is remove-then-run: it is idempotent
    for sequential calls but not safe to run concurrently for the same id.
    """

    def __init__(
        self,
        settings: Optional[FixtureSettings] = None,
        driver=None,
        readiness_probe: Optional[ReadinessProbe] = None,
    ):
        self.settings = settings or FixtureSettings()
        self.driver = driver or DockerCliDriver(logger=logger, run_cmd=CommandRunner(logger=logger).run)
        self.readiness_probe = readiness_probe or ReadinessProbe(logger=logger)

    def parse_instance_id(self, token: Union[int, str]) -> int:
        maximum = self.settings.max_instance_id

        if isinstance(token, bool):
            raise InvalidInstanceIdError(
                actionable_error("invalid_instance_id", value=token, maximum=maximum)
            )
        if isinstance(token, int):
            value = token
        else:
            text = str(token).strip()
            if not text.isascii() or not text.isdigit():
                raise InvalidInstanceIdError(
                    actionable_error("invalid_instance_id", value=token, maximum=maximum)
                )
            value = int(text)

        if not 0 <= value <= maximum:
            raise InvalidInstanceIdError(
                actionable_error("invalid_instance_id", value=token, maximum=maximum)
            )
        return value

    def container_name(self, instance_id: Union[int, str]) -> str:
        return f"{self.settings.prefix}-{self.parse_instance_id(instance_id)}"

    def host_port(self, instance_id: Union[int, str]) -> int:
        return self.settings.base_port + self.parse_instance_id(instance_id)

    def describe(self, instance_id: Union[int, str]) -> FixtureInstance:
        value = self.parse_instance_id(instance_id)
        return FixtureInstance(
            instance_id=value,
            container_name=self.container_name(value),
            host_port=self.host_port(value),
            container_port=self.settings.container_port,
            image=self.settings.image,
            environment={self.settings.env_var: str(value)},
        )

    def provision(self, instance_id: Union[int, str]) -> RunningFixture:
        fixture = self.describe(instance_id)
        logger.info(
            "Provisioning %s on port %s from image %s",
            fixture.container_name,
            fixture.host_port,
            fixture.image,
        )

        replaced = self.driver.remove_container(fixture.container_name)
        if replaced:
            logger.info("Removed previous container %s", fixture.container_name)

        container_id = self.driver.run_container(
            name=fixture.container_name,
            image=fixture.image,
            environment=fixture.environment,
            ports={fixture.host_port: fixture.container_port},
        )
        running = RunningFixture(fixture=fixture, container_id=container_id, replaced=replaced)

        if self.settings.ready_timeout > 0:
            console.print(f"[yellow]Waiting for {fixture.container_name} to answer...[/yellow]")
            self.readiness_probe.wait(running.url, self.settings.ready_timeout)

        console.print(
            f"[green]{fixture.container_name} is running on port {fixture.host_port}.[/green]"
        )
        return running

    def teardown(self, instance_id: Union[int, str]) -> bool:
        fixture = self.describe(instance_id)
        removed = self.driver.remove_container(fixture.container_name)
        if removed:
            logger.info("Removed %s", fixture.container_name)
        else:
            logger.info("No container named %s to remove", fixture.container_name)
        return removed

    def list_fixtures(self) -> List[FixtureStatus]:
        return self.driver.list_containers(f"{self.settings.prefix}-")
