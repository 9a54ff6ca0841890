"""
Integration Tests for the command-line front-end
"""

import json

import pytest
from click.testing import CliRunner

from opaque_engine import __version__
from opaque_engine.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "store.json")


@pytest.fixture
def ready_store(runner, store_path):
    """A store with alice registered."""
    result = runner.invoke(main, ["setup", "--store", store_path])
    assert result.exit_code == 0, result.output
    result = runner.invoke(main, [
        "register", "--store", store_path,
        "--user", "alice@example.com", "--password", "Tr0ub4dor&3",
    ])
    assert result.exit_code == 0, result.output
    return store_path


class TestCli:

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info(self, runner):
        result = runner.invoke(main, ["info"])
        assert result.exit_code == 0
        assert "ed25519-x25519-sha256" in result.output

    def test_setup_writes_store(self, runner, store_path):
        result = runner.invoke(main, ["setup", "--store", store_path, "--suite", "ed25519-sha512"])
        assert result.exit_code == 0, result.output
        with open(store_path, encoding="utf-8") as f:
            data = json.load(f)
        assert data["suite"] == "ed25519-sha512"
        assert data["records"] == {}

    def test_setup_refuses_overwrite(self, runner, store_path):
        assert runner.invoke(main, ["setup", "--store", store_path]).exit_code == 0
        result = runner.invoke(main, ["setup", "--store", store_path])
        assert result.exit_code == 1
        assert "exists" in result.output
        assert runner.invoke(main, ["setup", "--store", store_path, "--force"]).exit_code == 0

    def test_setup_with_scrypt(self, runner, store_path):
        result = runner.invoke(main, [
            "setup", "--store", store_path, "--ksf", "scrypt", "--ksf-memory", "16", "--ksf-time", "1",
        ])
        assert result.exit_code == 0, result.output
        with open(store_path, encoding="utf-8") as f:
            data = json.load(f)
        assert data["ksf"]["name"] == "scrypt"
        assert data["ksf"]["params"]["n"] == 16

    def test_setup_rejects_bad_ksf_params(self, runner, store_path):
        result = runner.invoke(main, [
            "setup", "--store", store_path, "--ksf", "scrypt", "--ksf-memory", "15",
        ])
        assert result.exit_code == 1

    def test_login_success(self, runner, ready_store):
        result = runner.invoke(main, [
            "login", "--store", ready_store,
            "--user", "alice@example.com", "--password", "Tr0ub4dor&3",
        ])
        assert result.exit_code == 0, result.output
        assert "Logged in" in result.output
        assert "yes" in result.output

    def test_login_wrong_password(self, runner, ready_store):
        result = runner.invoke(main, [
            "login", "--store", ready_store,
            "--user", "alice@example.com", "--password", "wrong-password",
        ])
        assert result.exit_code == 1
        assert "Login failed" in result.output

    def test_login_unknown_user_same_failure(self, runner, ready_store):
        result = runner.invoke(main, [
            "login", "--store", ready_store,
            "--user", "nobody@example.com", "--password", "Tr0ub4dor&3",
        ])
        assert result.exit_code == 1
        assert "Login failed" in result.output

    def test_register_duplicate(self, runner, ready_store):
        result = runner.invoke(main, [
            "register", "--store", ready_store,
            "--user", "alice@example.com", "--password", "other",
        ])
        assert result.exit_code == 1
        assert "already registered" in result.output

    def test_store_from_environment(self, runner, ready_store):
        result = runner.invoke(
            main,
            ["login", "--user", "alice@example.com", "--password", "Tr0ub4dor&3"],
            env={"OPAQUE_ENGINE_STORE": ready_store},
        )
        assert result.exit_code == 0, result.output

    def test_missing_store(self, runner, tmp_path):
        result = runner.invoke(main, [
            "login", "--store", str(tmp_path / "absent.json"),
            "--user", "alice", "--password", "x",
        ])
        assert result.exit_code == 1
        assert "setup" in result.output
