"""Tests for the kapprover CLI."""
from __future__ import annotations

import logging
import textwrap
from pathlib import Path
from typing import Iterator

import pytest
from click.testing import CliRunner

from kapprover.cli.main import cli

REQUESTS = textwrap.dedent(
    """
    requests:
      - name: csr-bootstrap
        username: kubelet-bootstrap
        groups: [system:kubelet-bootstrap]
      - name: csr-stranger
        username: mallory
        groups: [system:authenticated]
    """
)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def requests_file(tmp_path: Path) -> Path:
    path = tmp_path / "requests.yaml"
    path.write_text(REQUESTS, encoding="utf-8")
    return path


class TestVersionAndPlugins:
    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "kapprover" in result.output

    def test_plugins_lists_builtins(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["plugins"])
        assert result.exit_code == 0
        for name in ("always", "group", "username"):
            assert name in result.output


class TestCheckPolicy:
    def test_valid_policy(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check-policy", "--policy", "group=system:nodes,username"])
        assert result.exit_code == 0
        assert "group=system:nodes,username" in result.output

    def test_repeated_policy_options_concatenate(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check-policy", "-p", "group", "-p", "username"])
        assert result.exit_code == 0
        assert "group,username" in result.output

    def test_unknown_inspector_fails(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check-policy", "--policy", "group,nope"])
        assert result.exit_code == 1
        assert "nope" in result.output

    def test_bad_configuration_fails(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check-policy", "--policy", "username=(unclosed"])
        assert result.exit_code == 1


class TestEvaluate:
    def test_default_approver_approves_bootstrap(
        self, runner: CliRunner, requests_file: Path
    ) -> None:
        result = runner.invoke(cli, ["evaluate", "--requests", str(requests_file)])
        assert result.exit_code == 0
        assert "approved" in result.output
        assert "no_action" in result.output

    def test_policy_denies(self, runner: CliRunner, requests_file: Path) -> None:
        result = runner.invoke(
            cli,
            ["evaluate", "-r", str(requests_file), "-p", "group=system:kubelet-bootstrap"],
        )
        assert result.exit_code == 0
        assert "approved" in result.output
        assert "denied" in result.output

    def test_approver_can_be_disabled(self, runner: CliRunner, requests_file: Path) -> None:
        result = runner.invoke(cli, ["evaluate", "-r", str(requests_file), "-a", "none"])
        assert result.exit_code == 0
        assert "approved" not in result.output

    def test_config_file_supplies_policy(
        self, runner: CliRunner, requests_file: Path, tmp_path: Path
    ) -> None:
        config = tmp_path / "kapprover.yaml"
        config.write_text("policy: username\napprover: null\n", encoding="utf-8")
        result = runner.invoke(cli, ["evaluate", "-r", str(requests_file), "-c", str(config)])
        assert result.exit_code == 0
        assert "denied" in result.output
        assert "approved" not in result.output

    def test_invalid_config_fails(
        self, runner: CliRunner, requests_file: Path, tmp_path: Path
    ) -> None:
        config = tmp_path / "kapprover.yaml"
        config.write_text("retry:\n  max_attempts: 0\n", encoding="utf-8")
        result = runner.invoke(cli, ["evaluate", "-r", str(requests_file), "-c", str(config)])
        assert result.exit_code == 1

    def test_unknown_approver_fails(self, runner: CliRunner, requests_file: Path) -> None:
        result = runner.invoke(cli, ["evaluate", "-r", str(requests_file), "-a", "sometimes"])
        assert result.exit_code == 1
        assert "sometimes" in result.output


@pytest.fixture()
def kapprover_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("kapprover")
    yield logger
    logger.setLevel(logging.NOTSET)


class TestLogLevel:
    def test_flag_wins_over_config(
        self,
        runner: CliRunner,
        requests_file: Path,
        tmp_path: Path,
        kapprover_logger: logging.Logger,
    ) -> None:
        config = tmp_path / "kapprover.yaml"
        config.write_text("log_level: DEBUG\n", encoding="utf-8")
        result = runner.invoke(
            cli, ["--log-level", "ERROR", "evaluate", "-r", str(requests_file), "-c", str(config)]
        )
        assert result.exit_code == 0
        assert kapprover_logger.level == logging.ERROR

    def test_flag_applies_without_config(
        self, runner: CliRunner, requests_file: Path, kapprover_logger: logging.Logger
    ) -> None:
        result = runner.invoke(cli, ["--log-level", "ERROR", "evaluate", "-r", str(requests_file)])
        assert result.exit_code == 0
        assert kapprover_logger.getEffectiveLevel() == logging.ERROR

    def test_config_applies_without_flag(
        self,
        runner: CliRunner,
        requests_file: Path,
        tmp_path: Path,
        kapprover_logger: logging.Logger,
    ) -> None:
        config = tmp_path / "kapprover.yaml"
        config.write_text("log_level: DEBUG\n", encoding="utf-8")
        result = runner.invoke(cli, ["evaluate", "-r", str(requests_file), "-c", str(config)])
        assert result.exit_code == 0
        assert kapprover_logger.level == logging.DEBUG

    def test_no_flag_and_no_config_level_leaves_logger_unset(
        self, runner: CliRunner, requests_file: Path, kapprover_logger: logging.Logger
    ) -> None:
        kapprover_logger.setLevel(logging.DEBUG)
        result = runner.invoke(cli, ["evaluate", "-r", str(requests_file)])
        assert result.exit_code == 0
        assert kapprover_logger.level == logging.NOTSET


class TestInvalidRequestsFile:
    @pytest.mark.parametrize(
        "content",
        [
            "- name: a\n",
            "requests: null\n",
            "requests:\n  - name: node-csr-1\n  - name: node-csr-1\n",
            "requests: [unclosed\n",
        ],
        ids=["list-document", "null-requests", "duplicate-name", "malformed-yaml"],
    )
    def test_bad_fixture_exits_with_error(
        self, runner: CliRunner, tmp_path: Path, content: str
    ) -> None:
        path = tmp_path / "requests.yaml"
        path.write_text(content, encoding="utf-8")
        result = runner.invoke(cli, ["evaluate", "-r", str(path)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid requests file" in result.output
