"""docker buildx client for multi-platform release builds."""

import json
import os
import subprocess
import tempfile
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

from dumbrouter_ops.errors import (
    BuilderUnavailableError,
    BuildFailedError,
    OpsError,
    RegistryAuthError,
    RuntimeUnavailableError,
)
from dumbrouter_ops.errors_catalog import actionable_error, classify_failure
from dumbrouter_ops.models import ReleaseBuild

# Attestation manifests pushed by buildx carry this pseudo-platform.
ATTESTATION_PLATFORM = "unknown/unknown"

# Variants that are implied when a platform names only os/architecture.
DEFAULT_VARIANTS = {"arm64": "v8", "amd64": "v1"}


def normalize_platform(platform: str) -> str:
    """Canonical ``os/arch[/variant]`` spelling, dropping implied variants."""
    parts = [part.strip().lower() for part in platform.split("/")]
    if len(parts) == 3 and DEFAULT_VARIANTS.get(parts[1]) == parts[2]:
        parts = parts[:2]
    return "/".join(parts)


class BuildxRegistryClient:
    """Builds, pushes and inspects multi-platform images via ``docker buildx``.

    Any object exposing ``check_builder``, ``build_and_push`` and
    ``inspect_platforms`` can stand in for it.
    """

    TAIL_LINES = 40

    def __init__(
        self,
        logger,
        console,
        run_cmd: Callable,
        subprocess_module=subprocess,
        verbose: bool = False,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.subprocess = subprocess_module
        self.verbose = verbose

    def check_builder(self) -> str:
        result = self.run_cmd(["docker", "buildx", "version"], check=False, capture_output=True)
        if result.returncode != 0:
            error_class = classify_failure(result.stderr)
            if error_class is not RuntimeUnavailableError:
                error_class = BuilderUnavailableError
            diagnostic = (result.stderr or "").strip()
            raise error_class(f"{actionable_error('builder_unavailable')}\n{diagnostic}".strip())
        return (result.stdout or "").strip()

    def build_command(self, build: ReleaseBuild, metadata_file: Optional[str] = None) -> List[str]:
        cmd = [
            "docker",
            "buildx",
            "build",
            "--tag",
            build.image_reference,
            "--output",
            f"type={build.output_type}",
            f"--platform={','.join(build.platforms)}",
            "--file",
            os.path.join(build.context, build.dockerfile),
            "--progress",
            "plain",
        ]
        if build.push:
            cmd.append("--push")
        if metadata_file:
            cmd += ["--metadata-file", metadata_file]
        cmd.append(build.context)
        return cmd

    def build_and_push(self, build: ReleaseBuild) -> Optional[str]:
        """Run one buildx invocation for every platform and return the pushed digest."""
        fd, metadata_file = tempfile.mkstemp(prefix="dumbrouter-build-", suffix=".json")
        os.close(fd)
        try:
            cmd = self.build_command(build, metadata_file)
            returncode, tail = self._stream(cmd, build)
            if returncode != 0:
                raise self._build_error(build, tail)
            return self._read_digest(metadata_file)
        finally:
            try:
                os.remove(metadata_file)
            except OSError:
                pass

    def inspect_platforms(self, reference: str) -> Tuple[Optional[str], Tuple[str, ...]]:
        """Return the manifest digest and the platforms ``reference`` resolves to."""
        result = self.run_cmd(
            [
                "docker",
                "buildx",
                "imagetools",
                "inspect",
                reference,
                "--format",
                "{{json .Manifest}}",
            ],
            check=True,
            capture_output=True,
        )
        try:
            manifest = json.loads(result.stdout or "{}")
        except ValueError as exc:
            raise OpsError(f"Could not parse manifest of {reference}: {exc}") from exc

        platforms = []
        for entry in manifest.get("manifests") or []:
            platform = entry.get("platform") or {}
            name = f"{platform.get('os', 'unknown')}/{platform.get('architecture', 'unknown')}"
            if platform.get("variant"):
                name = f"{name}/{platform['variant']}"
            name = normalize_platform(name)
            if name != ATTESTATION_PLATFORM and name not in platforms:
                platforms.append(name)

        if not platforms and manifest.get("platform"):
            platform = manifest["platform"]
            platforms.append(f"{platform.get('os')}/{platform.get('architecture')}")

        return manifest.get("digest"), tuple(platforms)

    def _stream(self, cmd: List[str], build: ReleaseBuild) -> Tuple[int, List[str]]:
        from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

        self.logger.debug("Executing: %s", " ".join(cmd))
        last_lines: Deque[str] = deque(maxlen=self.TAIL_LINES)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=self.console,
        ) as progress:
            progress.add_task(
                f"[bold magenta]Building {build.image_reference} for {', '.join(build.platforms)}...",
                total=None,
            )

            try:
                process = self.subprocess.Popen(
                    cmd,
                    stdout=self.subprocess.PIPE,
                    stderr=self.subprocess.STDOUT,
                    text=True,
                    bufsize=1,
                )
            except FileNotFoundError as exc:
                raise RuntimeUnavailableError(
                    "Required command not found: docker. Please install it and try again."
                ) from exc
            except OSError as exc:
                raise OpsError(f"Failed to start build: {exc}") from exc

            if not process.stdout:
                raise OpsError("Build process did not expose logs. Aborting.")

            try:
                for line in process.stdout:
                    cleaned = line.rstrip()
                    if not cleaned:
                        continue
                    last_lines.append(cleaned)
                    self.logger.debug(cleaned)
                    if self.verbose:
                        self.console.print(f"[dim]{cleaned}[/dim]")

                returncode = process.wait()
            finally:
                if process.poll() is None:
                    self.logger.warning("Stopping unfinished build of %s", build.image_reference)
                    process.terminate()
                    try:
                        process.wait(timeout=10)
                    except self.subprocess.TimeoutExpired:
                        process.kill()
                        process.wait()

        return returncode, list(last_lines)

    def _build_error(self, build: ReleaseBuild, tail: List[str]) -> OpsError:
        diagnostic = "\n".join(tail)
        error_class = classify_failure(diagnostic)

        if error_class is RegistryAuthError:
            message = actionable_error("registry_auth", reference=build.image_reference)
        elif error_class in (BuilderUnavailableError, RuntimeUnavailableError):
            message = actionable_error("builder_unavailable")
        else:
            error_class = BuildFailedError
            message = actionable_error("build_failed", reference=build.image_reference)

        if diagnostic:
            message = f"{message}\n{diagnostic}"
        return error_class(message)

    def _read_digest(self, metadata_file: str) -> Optional[str]:
        try:
            with open(metadata_file, "r", encoding="utf-8") as file_obj:
                content = file_obj.read()
        except OSError as exc:
            self.logger.warning("Could not read build metadata '%s': %s", metadata_file, exc)
            return None

        if not content.strip():
            return None
        try:
            metadata = json.loads(content)
        except ValueError as exc:
            self.logger.warning("Build metadata is not valid JSON: %s", exc)
            return None
        return metadata.get("containerimage.digest")
