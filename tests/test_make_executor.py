"""Tests for the make executor and workspace/tool checks."""

import subprocess
from unittest.mock import patch

import pytest

from tfpipe.core.exceptions import CommandTimeoutError, ToolNotFoundError, WorkspaceError
from tfpipe.executors.make import MakeExecutor, check_tools, check_workspace, validate_target


class TestValidateTarget:
    """Make target names are validated before use."""

    @pytest.mark.parametrize("target", ["fmt", "pland", "plan-destroy", "apply_all", "v1.2"])
    def test_valid_targets(self, target):
        assert validate_target(target) == target

    @pytest.mark.parametrize("target", ["", "fmt; rm -rf /", "plan && apply", "$(whoami)", "a b"])
    def test_invalid_targets(self, target):
        with pytest.raises(ValueError):
            validate_target(target)


class TestMakeExecutor:
    """subprocess is mocked; nothing is executed."""

    def test_run_success(self, tmp_path):
        executor = MakeExecutor(tmp_path)
        completed = subprocess.CompletedProcess(["make", "fmt"], 0, stdout="ok\n", stderr="")

        with patch("tfpipe.executors.make.subprocess.run", return_value=completed) as mock_run:
            result = executor.run("fmt")

        assert result.ok
        assert result.command == ["make", "fmt"]
        assert result.stdout == "ok\n"
        args, kwargs = mock_run.call_args
        assert args[0] == ["make", "fmt"]
        assert kwargs["shell"] is False
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["capture_output"] is True
        assert kwargs["timeout"] == 3600

    def test_non_zero_exit_is_returned(self, tmp_path):
        executor = MakeExecutor(tmp_path)
        completed = subprocess.CompletedProcess(["make", "plan"], 2, stdout="", stderr="Error: bad")

        with patch("tfpipe.executors.make.subprocess.run", return_value=completed):
            result = executor.run("plan")

        assert not result.ok
        assert result.exit_code == 2
        assert result.stderr == "Error: bad"

    def test_environment_passthrough(self, tmp_path):
        executor = MakeExecutor(tmp_path, extra_env={"AWS_DEFAULT_REGION": "eu-west-1"})

        env = executor.build_env()

        assert env["AWS_DEFAULT_REGION"] == "eu-west-1"
        assert env["TF_INPUT"] == "0"
        assert env["TF_IN_AUTOMATION"] == "1"

    def test_custom_make_command(self, tmp_path):
        executor = MakeExecutor(tmp_path, make_command="gmake")

        assert executor.build_command("init") == ["gmake", "init"]

    def test_missing_make_raises(self, tmp_path):
        executor = MakeExecutor(tmp_path)

        with patch("tfpipe.executors.make.subprocess.run", side_effect=FileNotFoundError("make")):
            with pytest.raises(ToolNotFoundError) as excinfo:
                executor.run("fmt")

        assert excinfo.value.tool == "make"

    def test_timeout_raises(self, tmp_path):
        executor = MakeExecutor(tmp_path, timeout=5)

        with patch("tfpipe.executors.make.subprocess.run",
                   side_effect=subprocess.TimeoutExpired(["make", "apply"], 5)):
            with pytest.raises(CommandTimeoutError) as excinfo:
                executor.run("apply")

        assert excinfo.value.timeout_seconds == 5
        assert excinfo.value.command == "make apply"

    def test_invalid_target_never_executed(self, tmp_path):
        executor = MakeExecutor(tmp_path)

        with patch("tfpipe.executors.make.subprocess.run") as mock_run:
            with pytest.raises(ValueError):
                executor.run("fmt; echo pwned")

        mock_run.assert_not_called()


class TestCheckWorkspace:
    def test_terraform_files_found(self, workspace):
        result = check_workspace(workspace)

        assert result.ok
        assert "main.tf" in result.stdout
        assert "Makefile: present" in result.stdout

    def test_missing_directory(self, tmp_path):
        with pytest.raises(WorkspaceError, match="not found"):
            check_workspace(tmp_path / "nope")

    def test_empty_directory(self, tmp_path):
        with pytest.raises(WorkspaceError, match="No Terraform configuration"):
            check_workspace(tmp_path)


class TestCheckTools:
    def test_all_tools_found(self):
        with patch("tfpipe.executors.make.shutil.which", side_effect=lambda t: f"/usr/bin/{t}"):
            result = check_tools(["make", "terraform"])

        assert result.stdout == "make: /usr/bin/make\nterraform: /usr/bin/terraform"

    def test_missing_tool(self):
        with patch("tfpipe.executors.make.shutil.which",
                   side_effect=lambda t: None if t == "terraform" else f"/usr/bin/{t}"):
            with pytest.raises(ToolNotFoundError) as excinfo:
                check_tools(["make", "terraform"])

        assert excinfo.value.tool == "terraform"
