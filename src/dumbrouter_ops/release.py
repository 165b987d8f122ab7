import logging
import os
import time
from typing import Optional

from rich.console import Console

from .errors import OpsError, PublishVerificationError
from .errors_catalog import actionable_error
from .models import PublishResult, ReleaseBuild, ReleaseSettings
from .services.command_runner import CommandRunner
from .services.registry_client import BuildxRegistryClient, normalize_platform

console = Console()
logger = logging.getLogger("dumbrouter_ops")


class ReleasePipeline:
    """Builds the router image for every platform and pushes one manifest.

    The build runs as a single buildx invocation. If any platform fails
    nothing is pushed, and a failed run must be repeated from the start.
    The remote tag is overwritten on success.
    """

    def __init__(
        self,
        settings: Optional[ReleaseSettings] = None,
        registry_client=None,
        verbose: bool = False,
    ):
        self.settings = settings or ReleaseSettings()
        self.registry_client = registry_client or BuildxRegistryClient(
            logger=logger,
            console=console,
            run_cmd=CommandRunner(logger=logger).run,
            verbose=verbose,
        )

    def build_request(self) -> ReleaseBuild:
        return ReleaseBuild(
            repository=self.settings.repository,
            tag=self.settings.tag,
            platforms=tuple(self.settings.platforms),
            context=self.settings.context,
            dockerfile=self.settings.dockerfile,
        )

    def validate_context(self, build: ReleaseBuild):
        dockerfile_path = os.path.join(build.context, build.dockerfile)
        if not os.path.isdir(build.context) or not os.path.isfile(dockerfile_path):
            raise OpsError(
                actionable_error(
                    "missing_dockerfile",
                    dockerfile=build.dockerfile,
                    context=os.path.abspath(build.context),
                )
            )

    def verify_publish(self, build: ReleaseBuild):
        digest, platforms = self.registry_client.inspect_platforms(build.image_reference)
        resolved = {normalize_platform(platform) for platform in platforms}
        missing = [
            platform for platform in build.platforms if normalize_platform(platform) not in resolved
        ]
        if missing:
            raise PublishVerificationError(
                actionable_error(
                    "platform_missing",
                    reference=build.image_reference,
                    platforms=", ".join(missing),
                )
            )
        return digest, platforms

    def build_and_publish(self) -> PublishResult:
        build = self.build_request()
        started = time.monotonic()

        logger.info(
            "Releasing %s for %s from %s",
            build.image_reference,
            ", ".join(build.platforms),
            build.context,
        )
        self.validate_context(build)

        console.print("[blue]Checking docker buildx...[/blue]")
        builder_version = self.registry_client.check_builder()
        logger.debug("Using %s", builder_version)

        digest = self.registry_client.build_and_push(build)
        platforms = build.platforms

        if self.settings.verify:
            console.print(f"[blue]Verifying {build.image_reference} in the registry...[/blue]")
            verified_digest, platforms = self.verify_publish(build)
            digest = digest or verified_digest

        result = PublishResult(
            image_reference=build.image_reference,
            digest=digest,
            platforms=tuple(platforms),
            duration_seconds=time.monotonic() - started,
        )
        console.print(
            f"[green]Published {result.image_reference}"
            f"{' (' + result.digest + ')' if result.digest else ''}.[/green]"
        )
        logger.info("Published %s for %s", result.image_reference, ", ".join(result.platforms))
        return result
