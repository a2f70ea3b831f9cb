"""Tests for awsconnect.any.utils module."""

import subprocess
from unittest.mock import patch

import pytest

from awsconnect.any.utils import find_executable, run_command


class TestRunCommand:
    """Test run_command function."""

    def test_simple_command_success(self):
        """Test running a simple successful command."""
        result = run_command(["echo", "hello"])

        assert result.returncode == 0
        assert "hello" in result.stdout
        assert result.stderr == ""

    def test_command_failure_with_check_true(self):
        """Test command failure raises CalledProcessError when check=True."""
        with pytest.raises(subprocess.CalledProcessError) as exc_info:
            run_command(["false"])

        assert exc_info.value.returncode != 0

    def test_command_failure_with_check_false(self):
        """Test command failure doesn't raise when check=False."""
        result = run_command(["false"], check=False)

        assert result.returncode != 0

    def test_missing_executable(self):
        """Test that a missing program raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            run_command(["awsconnect-no-such-binary"])

    @patch("subprocess.run")
    def test_capture_output_false(self, mock_run):
        """Test not capturing output when capture=False."""
        mock_run.return_value = subprocess.CompletedProcess(args=["aws-vault", "login"], returncode=0)

        run_command(["aws-vault", "login", "dev"], capture=False)

        kwargs = mock_run.call_args.kwargs
        assert kwargs["stdout"] is None
        assert kwargs["stderr"] is None

    @patch("subprocess.run")
    def test_passthrough_stderr(self, mock_run):
        """Test that stdout is captured while stderr stays on the terminal."""
        mock_run.return_value = subprocess.CompletedProcess(args=["aws-vault"], returncode=0, stdout="{}")

        run_command(["aws-vault", "export", "--format=json", "dev"], passthrough_stderr=True, timeout=30)

        kwargs = mock_run.call_args.kwargs
        assert kwargs["stdout"] == subprocess.PIPE
        assert kwargs["stderr"] is None
        assert kwargs["timeout"] == 30

    @patch("subprocess.run")
    def test_env_overrides_parent(self, mock_run):
        """Test that extra variables win over the parent environment."""
        mock_run.return_value = subprocess.CompletedProcess(args=["aws"], returncode=0, stdout="")

        with patch.dict("os.environ", {"AWS_PROFILE": "parent"}):
            run_command(["aws", "sts", "get-caller-identity"], env={"AWS_PROFILE": "child"})

        assert mock_run.call_args.kwargs["env"]["AWS_PROFILE"] == "child"

    def test_environment_variables_merged_with_os_environ(self):
        """Test that custom env vars are merged with os.environ."""
        result = run_command(["sh", "-c", "echo $PATH:$CUSTOM"], env={"CUSTOM": "added"})

        assert ":" in result.stdout
        assert "added" in result.stdout

    @patch("subprocess.run")
    def test_timeout_expired_propagates(self, mock_run):
        """Test that timeouts are raised to the caller."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=["aws-vault"], timeout=1)

        with pytest.raises(subprocess.TimeoutExpired):
            run_command(["aws-vault", "exec", "dev"], timeout=1)


class TestFindExecutable:
    """Test find_executable function."""

    def test_finds_shell(self):
        """Test that a standard program is found."""
        assert find_executable("sh") is not None

    def test_missing(self):
        """Test that a missing program gives None."""
        assert find_executable("awsconnect-no-such-binary") is None
