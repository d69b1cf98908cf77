"""Tests for Ensure and fail()."""

from pathlib import Path

import pytest

from tests.fakes.ports import FakePortRegistry
from tests.test_utils.paths import make_repo_context, sentinel_path
from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.core.context import WttContext
from wtt.core.repo_discovery import NoRepoSentinel


def test_fail_prints_error_and_exits_1(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        fail("boom")

    assert exc_info.value.code == 1
    assert "Error: boom" in capsys.readouterr().err


def test_fail_with_custom_exit_code() -> None:
    with pytest.raises(SystemExit) as exc_info:
        fail("boom", exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    assert exc_info.value.code == 2


def test_invariant_passes_through() -> None:
    Ensure.invariant(True, "unused")


def test_invariant_exits_on_false(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        Ensure.invariant(False, "Branch is missing")

    assert exc_info.value.code == 1
    assert "Branch is missing" in capsys.readouterr().err


def test_not_none_returns_value() -> None:
    assert Ensure.not_none(0, "missing") == 0


def test_not_none_exits_on_none() -> None:
    with pytest.raises(SystemExit):
        Ensure.not_none(None, "missing")


def test_in_repo_returns_repo() -> None:
    repo = make_repo_context(sentinel_path())
    ctx = WttContext.for_test(repo=repo)

    assert Ensure.in_repo(ctx) == repo


def test_in_repo_outside_repository_exits_2(capsys: pytest.CaptureFixture[str]) -> None:
    ctx = WttContext.for_test(repo=NoRepoSentinel(message="Not inside a git repository: /tmp"))

    with pytest.raises(SystemExit) as exc_info:
        Ensure.in_repo(ctx)

    assert exc_info.value.code == ENVIRONMENT_ERROR_EXIT_CODE
    assert "Not inside a git repository: /tmp" in capsys.readouterr().err


def test_ports_returns_registry() -> None:
    ports = FakePortRegistry()
    ctx = WttContext.for_test(repo=make_repo_context(Path("/repo")), ports=ports)

    assert Ensure.ports(ctx) is ports
