import json
import subprocess

import pytest

from dumbrouter_ops.errors import (
    ImageNotFoundError,
    OpsError,
    ResourceCollisionError,
    RuntimeUnavailableError,
)
from dumbrouter_ops.services.container_driver import DockerCliDriver


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class FakeRunCmd:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def __call__(self, cmd, check=True, capture_output=False):
        self.calls.append(cmd)
        returncode, stdout, stderr = self.results.pop(0)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)


def test_remove_container_reports_removal():
    run_cmd = FakeRunCmd((0, "http-dummyserver-3\n", ""))
    driver = DockerCliDriver(logger=DummyLogger(), run_cmd=run_cmd)

    assert driver.remove_container("http-dummyserver-3") is True
    assert run_cmd.calls == [["docker", "rm", "--force", "http-dummyserver-3"]]


def test_remove_container_masks_missing_container():
    run_cmd = FakeRunCmd((1, "", "Error response from daemon: No such container: http-dummyserver-3"))
    driver = DockerCliDriver(logger=DummyLogger(), run_cmd=run_cmd)

    assert driver.remove_container("http-dummyserver-3") is False


def test_remove_container_treats_silent_success_as_absent():
    driver = DockerCliDriver(logger=DummyLogger(), run_cmd=FakeRunCmd((0, "", "")))

    assert driver.remove_container("http-dummyserver-3") is False


def test_remove_container_propagates_other_failures():
    run_cmd = FakeRunCmd((1, "", "Cannot connect to the Docker daemon. Is the docker daemon running?"))
    driver = DockerCliDriver(logger=DummyLogger(), run_cmd=run_cmd)

    with pytest.raises(RuntimeUnavailableError, match="Is the docker daemon running"):
        driver.remove_container("http-dummyserver-3")


def test_run_container_builds_detached_command():
    run_cmd = FakeRunCmd((0, "4f3c2a\n", ""))
    driver = DockerCliDriver(logger=DummyLogger(), run_cmd=run_cmd)

    container_id = driver.run_container(
        name="http-dummyserver-3",
        image="dummyserver",
        environment={"NUMBER": "3"},
        ports={8093: 80},
    )

    assert container_id == "4f3c2a"
    assert run_cmd.calls[0] == [
        "docker",
        "run",
        "--detach",
        "--pull",
        "never",
        "--name",
        "http-dummyserver-3",
        "--env",
        "NUMBER=3",
        "--publish",
        "8093:80",
        "dummyserver",
    ]


@pytest.mark.parametrize(
    "stderr, expected",
    [
        ("docker: Error response from daemon: No such image: dummyserver:latest.", ImageNotFoundError),
        ("Bind for 0.0.0.0:8093 failed: port is already allocated.", ResourceCollisionError),
        ("weird failure", OpsError),
    ],
)
def test_run_container_classifies_failures(stderr, expected):
    driver = DockerCliDriver(logger=DummyLogger(), run_cmd=FakeRunCmd((125, "", stderr)))

    with pytest.raises(expected):
        driver.run_container("http-dummyserver-3", "dummyserver", {"NUMBER": "3"}, {8093: 80})


def test_run_container_requires_container_id():
    driver = DockerCliDriver(logger=DummyLogger(), run_cmd=FakeRunCmd((0, "", "")))

    with pytest.raises(OpsError, match="container id"):
        driver.run_container("http-dummyserver-3", "dummyserver", {}, {})


def test_list_containers_parses_json_lines():
    rows = [
        {"Names": "http-dummyserver-2", "State": "running", "Ports": "0.0.0.0:8092->80/tcp"},
        {"Names": "http-dummyserver-10-other", "State": "exited", "Ports": ""},
        {"Names": "my-http-dummyserver-1", "State": "running", "Ports": ""},
    ]
    stdout = "\n".join(json.dumps(row) for row in rows) + "\nnot json\n"
    run_cmd = FakeRunCmd((0, stdout, ""))
    driver = DockerCliDriver(logger=DummyLogger(), run_cmd=run_cmd)

    statuses = driver.list_containers("http-dummyserver-")

    assert [status.container_name for status in statuses] == [
        "http-dummyserver-10-other",
        "http-dummyserver-2",
    ]
    assert statuses[1].ports == "0.0.0.0:8092->80/tcp"
    assert "name=^http-dummyserver-" in run_cmd.calls[0]
