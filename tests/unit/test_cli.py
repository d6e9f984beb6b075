"""Unit tests for CLI commands."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from layerscan.cli.main import app
from layerscan.core.exporter import ImageExporter
from layerscan.core.resolver import ImageResolver
from layerscan.engine.base import EngineNotFoundError
from layerscan.utils.config import get_config, load_config

runner = CliRunner()


@pytest.fixture
def patched_exporter(fake_gateway, inspect_data):
    """Route CLI commands to an exporter on a gateway double."""

    def install(answers=None, archive=None, temp_root=None):
        gateway = fake_gateway(answers, archive=archive)
        exporter = ImageExporter(gateway, ImageResolver(gateway), temp_root=temp_root)
        return patch.object(ImageExporter, "from_config", return_value=exporter), gateway

    return install


class TestMainCLI:
    """Tests for main CLI app."""

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "layerscan" in result.stdout.lower()

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_config_option_loads_file(self, tmp_path):
        config_path = tmp_path / "cfg.yaml"
        config_path.write_text("export:\n  temp_dir: /scratch\n")

        result = runner.invoke(app, ["--config", str(config_path), "version"])

        assert result.exit_code == 0
        assert get_config().export.temp_dir == "/scratch"

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "nope.yaml"), "version"])
        assert result.exit_code == 2


class TestParseCommand:
    """Tests for parse command."""

    def test_parse_json(self):
        result = runner.invoke(app, ["parse", "myregistry.local:5000/testing/test-image", "-f", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["registry"] == "myregistry.local:5000"
        assert data["repo"] == "testing/test-image"

    def test_parse_terminal(self):
        result = runner.invoke(app, ["parse", "debian:jessie"])
        assert result.exit_code == 0
        assert "jessie" in result.stdout


class TestInspectCommand:
    """Tests for inspect command."""

    def test_inspect_found(self, patched_exporter, inspect_data):
        patcher, _ = patched_exporter({"images/demo/json": inspect_data})
        with patcher:
            result = runner.invoke(app, ["inspect", "demo"])

        assert result.exit_code == 0
        assert "sha256:4f3c1a2b" in result.stdout

    def test_inspect_missing(self, patched_exporter):
        patcher, _ = patched_exporter()
        with patcher:
            result = runner.invoke(app, ["inspect", "ghost"])

        assert result.exit_code == 1
        assert "not_found" in result.stdout

    def test_invalid_reference(self):
        result = runner.invoke(app, ["inspect", "bad image"])
        assert result.exit_code == 2


class TestExportCommand:
    """Tests for export command."""

    def test_export_json(self, tmp_path, patched_exporter, inspect_data, make_image_archive):
        archive = make_image_archive([{"usr/lib/python3/site-packages/": b""}])
        patcher, _ = patched_exporter({"images/demo/json": inspect_data}, archive, tmp_path)
        output = tmp_path / "paths.json"

        with patcher:
            result = runner.invoke(app, ["export", "demo", "-f", "json", "-o", str(output)])

        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["layers"] == ["layer0/layer.tar"]
        assert len(data["pkgPathList"]) == 15
        assert any(path.endswith("site-packages") for path in data["pkgPathList"])

    def test_export_existing_only(self, tmp_path, patched_exporter, inspect_data, make_image_archive):
        archive = make_image_archive([{"usr/lib/python3/site-packages/": b""}])
        patcher, _ = patched_exporter({"images/demo/json": inspect_data}, archive, tmp_path)
        output = tmp_path / "paths.json"

        with patcher:
            result = runner.invoke(
                app, ["export", "demo", "--existing", "-f", "json", "-o", str(output)]
            )

        assert result.exit_code == 0
        paths = json.loads(output.read_text())["pkgPathList"]
        assert all(path.split("all-layers")[1].startswith(("/usr/lib", "\\usr\\lib")) for path in paths)

    def test_export_failure(self, patched_exporter):
        patcher, gateway = patched_exporter()
        with patcher:
            result = runner.invoke(app, ["export", "ghost"])

        assert result.exit_code == 1
        gateway.stream.assert_not_called()


class TestRemoveCommand:
    """Tests for remove command."""

    def test_remove(self, patched_exporter):
        patcher, gateway = patched_exporter({"DELETE images/demo?force=true": "[]"})
        with patcher:
            result = runner.invoke(app, ["remove", "demo", "--force"])

        assert result.exit_code == 0
        assert "Removed demo" in result.stdout

    def test_remove_missing(self, patched_exporter):
        patcher, _ = patched_exporter({"DELETE images/demo?force=false": EngineNotFoundError("images/demo")})
        with patcher:
            result = runner.invoke(app, ["remove", "demo"])

        assert result.exit_code == 1


class TestConfigCommand:
    """Tests for config command."""

    def test_show_terminal(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "unix:///var/run/docker.sock" in result.stdout

    def test_show_json_includes_environment(self, monkeypatch):
        monkeypatch.setenv("DOCKER_HOST", "tcp://build-host:2375")

        result = runner.invoke(app, ["config", "-f", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["engine"]["host"] == "tcp://build-host:2375"

    def test_save(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOCKER_HOST", "tcp://build-host:2375")
        target = tmp_path / "saved.yaml"

        result = runner.invoke(app, ["config", "--save", "--path", str(target)])

        assert result.exit_code == 0
        assert "Configuration written to" in result.stdout
        assert load_config(target, environ={}).engine.host == "tcp://build-host:2375"

    def test_save_default_location(self, tmp_path):
        result = runner.invoke(app, ["config", "--save"])

        assert result.exit_code == 0
        assert (tmp_path / "home" / ".layerscan" / "config.yaml").is_file()
