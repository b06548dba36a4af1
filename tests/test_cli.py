"""
Tests for the hierarch CLI.

Validates:
- run: exit codes, summary output, state and journal files
- grace: lists records
- validate: config errors exit 1
"""
import json
import logging

import pytest
import yaml

from hierarch.cli import EXIT_ABORTED, EXIT_ERROR, EXIT_OK, main


@pytest.fixture(autouse=True)
def reset_logging():
    """main() installs a stderr handler on the hierarch logger; drop it after each test."""
    logger = logging.getLogger("hierarch")
    level = logger.level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(level)


@pytest.fixture
def workspace(tmp_path):
    config = {
        "privileged_role_id": "h",
        "member_role_id": "m",
        "protected_role_ids": ["mod"],
        "top_n": 1,
        "grace_periods": 2,
        "state_path": str(tmp_path / "grace.json"),
        "logs_dir": str(tmp_path / "logs"),
    }
    (tmp_path / "hierarch.yaml").write_text(yaml.safe_dump(config))
    (tmp_path / "activity.json").write_text(json.dumps({"a": 5, "b": 1}))
    (tmp_path / "directory.json").write_text(json.dumps({
        "roles": ["h", "m", "mod"],
        "members": {
            "a": {"display_name": "Ada", "roles": ["m"]},
            "b": {"display_name": "Bea", "roles": ["m", "h"]},
        },
    }))
    return tmp_path


def _run_args(ws, *extra):
    return [
        "--log-level", "WARNING",
        "run",
        "--config", str(ws / "hierarch.yaml"),
        "--activity", str(ws / "activity.json"),
        "--directory", str(ws / "directory.json"),
        *extra,
    ]


class TestRunCommand:
    def test_run_writes_state_journal_and_logs(self, workspace, capsys):
        journal = workspace / "journal.jsonl"
        code = main(_run_args(workspace, "--journal", str(journal), "--period", "W1"))

        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert "+ Ada (5 mentions)" in out
        assert "~ Bea (1/2 weeks, 1 remaining)" in out

        state = json.loads((workspace / "grace.json").read_text())
        assert state["period"] == "W1"
        assert state["records"]["b"]["weeks_out"] == 1
        entries = [json.loads(line) for line in journal.read_text().splitlines()]
        assert [(e["action"], e["user_id"]) for e in entries] == [("grant", "a")]
        assert (workspace / "logs" / "latest-summary.txt").exists()

    def test_dry_run_writes_no_state(self, workspace):
        assert main(_run_args(workspace, "--dry-run")) == EXIT_OK
        assert not (workspace / "grace.json").exists()

    def test_abort_exit_code(self, workspace, capsys):
        (workspace / "activity.json").write_text("{broken")
        assert main(_run_args(workspace)) == EXIT_ABORTED
        assert "Run aborted" in capsys.readouterr().err

    def test_config_from_env_file(self, workspace, monkeypatch):
        env_file = workspace / ".env"
        env_file.write_text(
            "HIERARCH_ROLE_ID=h\nMEMBER_ROLE_ID=m\n"
            f"HIERARCH_STATE_PATH={workspace / 'env-grace.json'}\n"
            f"HIERARCH_LOGS_DIR={workspace / 'env-logs'}\n"
        )
        # Registered with monkeypatch so values loaded from the file are removed afterwards
        for name in ("HIERARCH_ROLE_ID", "MEMBER_ROLE_ID", "HIERARCH_STATE_PATH", "HIERARCH_LOGS_DIR"):
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        code = main([
            "--log-level", "WARNING", "--env-file", str(env_file),
            "run",
            "--activity", str(workspace / "activity.json"),
            "--directory", str(workspace / "directory.json"),
        ])
        assert code == EXIT_OK
        assert (workspace / "env-grace.json").exists()


class TestGraceCommand:
    def test_lists_records(self, workspace, capsys):
        main(_run_args(workspace))
        capsys.readouterr()

        code = main(["--log-level", "WARNING", "grace", "--state", str(workspace / "grace.json")])
        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "GRACE RECORDS (1)" in out
        assert "Bea" in out

    def test_corrupt_state(self, workspace, capsys):
        path = workspace / "grace.json"
        path.write_text("[]")
        assert main(["--log-level", "WARNING", "grace", "--state", str(path)]) == EXIT_ERROR

    def test_json_output(self, workspace, capsys):
        main(_run_args(workspace))
        capsys.readouterr()
        main(["--log-level", "WARNING", "grace", "--state", str(workspace / "grace.json"), "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["version"] == 1


class TestValidateCommand:
    def test_valid(self, workspace, capsys):
        code = main(["--log-level", "WARNING", "validate", "--config", str(workspace / "hierarch.yaml")])
        assert code == EXIT_OK
        assert "CONFIGURATION VALID" in capsys.readouterr().out

    def test_invalid(self, workspace, capsys):
        bad = workspace / "bad.yaml"
        bad.write_text(yaml.safe_dump({"privileged_role_id": "h", "member_role_id": "m", "top_n": 0}))
        assert main(["--log-level", "WARNING", "validate", "--config", str(bad)]) == EXIT_ERROR
        assert "top_n" in capsys.readouterr().err

    def test_no_command(self, capsys):
        assert main([]) == EXIT_ERROR


class TestConfigErrorsExitCleanly:
    """Any configuration failure exits 1 with a message, never a traceback."""

    @pytest.fixture
    def future_config(self, workspace):
        path = workspace / "future.yaml"
        path.write_text(yaml.safe_dump({
            "schema_version": "2.0.0",
            "privileged_role_id": "h",
            "member_role_id": "m",
        }))
        return path

    def test_validate_version_mismatch(self, future_config, capsys):
        code = main(["--log-level", "WARNING", "validate", "--config", str(future_config)])
        assert code == EXIT_ERROR
        assert "Configuration error" in capsys.readouterr().err

    def test_run_version_mismatch(self, workspace, future_config, capsys):
        args = _run_args(workspace)
        args[args.index("--config") + 1] = str(future_config)
        assert main(args) == EXIT_ERROR
        assert "schema_version" in capsys.readouterr().err
        assert not (workspace / "grace.json").exists()

    def test_grace_version_mismatch(self, future_config, capsys):
        code = main(["--log-level", "WARNING", "grace", "--config", str(future_config)])
        assert code == EXIT_ERROR
        assert "Configuration error" in capsys.readouterr().err

    def test_unknown_log_level(self, workspace, capsys):
        code = main(["--log-level", "BOGUS", "validate", "--config", str(workspace / "hierarch.yaml")])
        assert code == EXIT_ERROR
        assert "Logging error" in capsys.readouterr().err
