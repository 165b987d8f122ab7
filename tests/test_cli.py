import pytest
from click.testing import CliRunner

import dumbrouter_ops.cli as cli_module
from dumbrouter_ops.errors import ImageNotFoundError, RegistryAuthError


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DUMBROUTER_OPS_CONFIG", raising=False)
    return tmp_path


def _fake_provisioner(monkeypatch, captured, error=None, existed=True):
    class FakeProvisioner:
        def __init__(self, settings=None, **_kwargs):
            captured["settings"] = settings

        def provision(self, instance_id):
            captured["provision"] = instance_id
            if error:
                raise error

        def teardown(self, instance_id):
            captured["teardown"] = instance_id
            return existed

        def list_fixtures(self):
            return []

    monkeypatch.setattr(cli_module, "FixtureProvisioner", FakeProvisioner)


def test_make_dummy_server_concatenates_arguments(monkeypatch):
    captured = {}
    _fake_provisioner(monkeypatch, captured)

    result = CliRunner().invoke(cli_module.make_dummy_server, ["1", "2"])

    assert result.exit_code == 0
    assert captured["provision"] == "12"
    assert captured["settings"].base_port == 8090


def test_make_dummy_server_requires_an_id(monkeypatch):
    captured = {}
    _fake_provisioner(monkeypatch, captured)

    result = CliRunner().invoke(cli_module.make_dummy_server, [])

    assert result.exit_code != 0
    assert "provision" not in captured


def test_make_dummy_server_exits_non_zero_on_fatal_error(monkeypatch):
    captured = {}
    _fake_provisioner(monkeypatch, captured, error=ImageNotFoundError("No such image: dummyserver"))

    result = CliRunner().invoke(cli_module.make_dummy_server, ["3"])

    assert result.exit_code == 1


def test_remove_dummy_server_succeeds_when_nothing_existed(monkeypatch):
    captured = {}
    _fake_provisioner(monkeypatch, captured, existed=False)

    result = CliRunner().invoke(cli_module.remove_dummy_server, ["5"])

    assert result.exit_code == 0
    assert captured["teardown"] == "5"


def test_list_dummy_servers_prints_table(monkeypatch):
    _fake_provisioner(monkeypatch, {})

    result = CliRunner().invoke(cli_module.list_dummy_servers, [])

    assert result.exit_code == 0


def test_config_file_overrides_fixture_settings(isolated_config, monkeypatch):
    (isolated_config / ".dumbrouter-ops.yml").write_text(
        "fixture_base_port: 9000\nfixture_id_width: 2\n",
        encoding="utf-8",
    )
    captured = {}
    _fake_provisioner(monkeypatch, captured)

    result = CliRunner().invoke(cli_module.make_dummy_server, ["42"])

    assert result.exit_code == 0
    assert captured["settings"].base_port == 9000
    assert captured["settings"].id_width == 2


def test_config_path_from_environment(isolated_config, monkeypatch):
    config_file = isolated_config / "custom.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")
    monkeypatch.setenv("DUMBROUTER_OPS_CONFIG", str(config_file))
    _fake_provisioner(monkeypatch, {})

    result = CliRunner().invoke(cli_module.make_dummy_server, ["1"])

    assert result.exit_code != 0
    assert "Unknown configuration keys" in result.output


def test_build_release_takes_no_arguments(monkeypatch):
    captured = {}

    class FakePipeline:
        def __init__(self, settings=None, verbose=False, **_kwargs):
            captured["settings"] = settings

        def build_and_publish(self):
            captured["published"] = True

    monkeypatch.setattr(cli_module, "ReleasePipeline", FakePipeline)

    result = CliRunner().invoke(cli_module.build_release, [])

    assert result.exit_code == 0
    assert captured["published"] is True
    assert captured["settings"].repository == "viomckinney/dumbrouter"
    assert captured["settings"].tag == "latest"

    rejected = CliRunner().invoke(cli_module.build_release, ["extra"])
    assert rejected.exit_code != 0


def test_build_release_exits_non_zero_on_failure(monkeypatch):
    class FailingPipeline:
        def __init__(self, **_kwargs):
            pass

        def build_and_publish(self):
            raise RegistryAuthError("unauthorized")

    monkeypatch.setattr(cli_module, "ReleasePipeline", FailingPipeline)

    result = CliRunner().invoke(cli_module.build_release, [])

    assert result.exit_code == 1


def test_quoted_boolean_in_config_is_rejected(isolated_config, monkeypatch):
    (isolated_config / ".dumbrouter-ops.yml").write_text('verbose: "no"\n', encoding="utf-8")
    captured = {}
    _fake_provisioner(monkeypatch, captured)

    result = CliRunner().invoke(cli_module.make_dummy_server, ["1"])

    assert result.exit_code != 0
    assert "verbose must be true or false" in result.output
    assert "provision" not in captured
