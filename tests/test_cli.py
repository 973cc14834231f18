import logging

import pytest
import typer
import yaml
from typer.testing import CliRunner

from conftest import read_tree
from firmrel.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def config_file(tmp_path, firmware_tree, backup_root):
    path = tmp_path / "firmrel.yaml"
    path.write_text(yaml.safe_dump({
        "repository": {"path": str(firmware_tree)},
        "backup": {"root_dir": str(backup_root)},
    }))
    return path


class TestCli:

    def test_show_version(self, firmware_repo, config_file):
        result = runner.invoke(app, ["--config", str(config_file), "release", "show", "version"])
        assert result.exit_code == 0
        assert "1.2.3" in result.output

    def test_show_defaults_to_version(self, firmware_repo, config_file):
        result = runner.invoke(app, ["--config", str(config_file), "release", "show"])
        assert result.exit_code == 0
        assert "1.2.3" in result.output

    def test_init(self, firmware_repo, config_file):
        result = runner.invoke(app, ["--config", str(config_file), "release", "init", "1.2.4"])
        assert result.exit_code == 0
        assert firmware_repo.active_branch.name == "release/v1.2.4"
        assert "git diff" in result.output

    def test_init_invalid_version_exits_non_zero(self, firmware_repo, firmware_tree, config_file):
        before = read_tree(firmware_tree)
        result = runner.invoke(app, ["--config", str(config_file), "release", "init", "nope"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Invalid version number: nope" in result.output
        assert read_tree(firmware_tree) == before

    def test_quiet_suppresses_log_output(self, firmware_repo, config_file):
        result = runner.invoke(app, ["-q", "--config", str(config_file), "release", "show"])
        assert result.exit_code == 0
        assert "1.2.3" not in result.output

    def test_bad_config_file(self, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "missing.yaml"), "release", "show"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_not_a_repository(self, tmp_path):
        path = tmp_path / "firmrel.yaml"
        path.write_text(yaml.safe_dump({"repository": {"path": str(tmp_path)}}))
        result = runner.invoke(app, ["--config", str(path), "release", "show"])
        assert result.exit_code == 1
        assert "No Git repository found" in result.output

    def test_quiet_still_reports_errors(self, firmware_repo, config_file):
        result = runner.invoke(app, ["-q", "--config", str(config_file), "release", "init", "nope"])
        assert result.exit_code == 1
        assert "Invalid version number: nope" in result.output

    def test_quiet_help_mentions_errors(self):
        command = typer.main.get_command(app)
        quiet = next(param for param in command.params if param.name == "quiet")
        assert "errors are still printed" in quiet.help
