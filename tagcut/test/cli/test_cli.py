"""Caller-side command tests. The gateway is replaced by a recording fake."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import typer

import tagcut.cli.context as cli_context
from tagcut.cli import app as cli_app
from tagcut.cli.commands import ProjectType, ReleaseKind, handlers, init, release, validate
from tagcut.core.errors import ErrorCode
from tagcut.core.result import Err, Ok, Result
from tagcut.gateway.dispatcher import TransportError
from tagcut.protocol.messages import (
    ReleaseRequest,
    ReleaseResponse,
    ResponseMetadata,
    error_response,
    success_response,
)


class Gateway:
    def __init__(self, response: Result[ReleaseResponse, TransportError]) -> None:
        self.response = response
        self.requests: list[ReleaseRequest] = []

    def __call__(self, ctx: cli_context.CLIContext, request: ReleaseRequest) -> Result[ReleaseResponse, TransportError]:
        self.requests.append(request)
        return self.response


def _meta(command: str) -> ResponseMetadata:
    return ResponseMetadata(handler="release", version="0.3.0", command=command, timestamp="t")


ENV_VARS = (
    cli_context.WORKDIR_ENV_VAR,
    cli_context.VERBOSE_ENV_VAR,
    cli_context.HANDLER_ENV_VAR,
    cli_context.TIMEOUT_ENV_VAR,
)


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv records the original value for teardown
    for var in ENV_VARS:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    _clear_env(monkeypatch)
    monkeypatch.setenv(cli_context.WORKDIR_ENV_VAR, str(tmp_path))
    return tmp_path


def _install(monkeypatch: pytest.MonkeyPatch, response: Result[ReleaseResponse, TransportError]) -> Gateway:
    gateway = Gateway(response)
    monkeypatch.setattr(cli_context, "send", gateway)
    return gateway


class TestBuildContext:
    def test_reads_environment(self, tmp_path: Path) -> None:
        ctx = cli_context.build_context(
            {
                "TAGCUT_WORKDIR": str(tmp_path),
                "TAGCUT_VERBOSE": "1",
                "TAGCUT_HANDLER": "release",
                "TAGCUT_TIMEOUT": "30",
            }
        )

        assert ctx.workdir == tmp_path
        assert ctx.verbose is True
        assert ctx.handler == "release"
        assert ctx.timeout == 30.0

    def test_defaults(self) -> None:
        ctx = cli_context.build_context({})

        assert ctx.verbose is False
        assert ctx.handler is None
        assert ctx.timeout is None

    @pytest.mark.parametrize("raw", ["", "soon", "0", "-5"])
    def test_unusable_timeout_means_none(self, raw: str) -> None:
        assert cli_context.build_context({"TAGCUT_TIMEOUT": raw}).timeout is None


class TestRelease:
    def test_sends_type_as_argument(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        gateway = _install(monkeypatch, Ok(success_response(_meta("release"), {"new_version": "1.2.3"})))

        release(release_type=ReleaseKind.patch, dry_run=False)

        request = gateway.requests[0]
        assert request.command == "release"
        assert request.args == ("patch",)
        assert request.flags == {"dry-run": False}
        assert request.context.working_dir == str(workdir)

    def test_without_type_off_a_terminal(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys.stdin, "isatty", lambda: False)
        gateway = _install(
            monkeypatch,
            Ok(error_response(_meta("release"), "RELEASE_TYPE_REQUIRED", "release type required")),
        )

        with pytest.raises(typer.Exit) as exc:
            release(release_type=None, dry_run=False)

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
        assert gateway.requests[0].args == ()

    def test_error_maps_to_exit_code(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _install(
            monkeypatch,
            Ok(error_response(_meta("release"), "UNCOMMITTED_CHANGES", "working tree has uncommitted changes")),
        )

        with pytest.raises(typer.Exit) as exc:
            release(release_type=ReleaseKind.minor, dry_run=False)

        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)

    def test_rollback_failure_exit_code(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _install(monkeypatch, Ok(error_response(_meta("release"), "ROLLBACK_FAILED", "rollback: boom")))

        with pytest.raises(typer.Exit) as exc:
            release(release_type=ReleaseKind.major, dry_run=False)

        assert exc.value.exit_code == int(ErrorCode.RELEASE_ERROR)

    def test_transport_error(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _install(monkeypatch, Err(TransportError(message="handler execution failed (exit 2)")))

        with pytest.raises(typer.Exit) as exc:
            release(release_type=ReleaseKind.patch, dry_run=True)

        assert exc.value.exit_code == int(ErrorCode.TRANSPORT_ERROR)


class TestInit:
    def test_flags(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        gateway = _install(monkeypatch, Ok(success_response(_meta("init"), {"backend": "jreleaser"})))

        init(
            project_type=ProjectType.backend,
            backend="jreleaser",
            version=None,
            project_owner="acme",
            project_name=None,
            force=True,
        )

        assert gateway.requests[0].flags == {
            "project-type": "backend",
            "backend": "jreleaser",
            "force": True,
            "project-owner": "acme",
        }


def test_validate_show_flag(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    gateway = _install(monkeypatch, Ok(success_response(_meta("validate"), {"items": []})))

    validate(show=True)

    assert gateway.requests[0].command == "validate"
    assert gateway.requests[0].flags == {"show": True}


def test_handlers_without_directory(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TAGCUT_HANDLER_DIR", raising=False)

    handlers()


class TestRootCallback:
    def test_version(self) -> None:
        with pytest.raises(typer.Exit) as exc:
            cli_app._main(version=True, verbose=False, handler=None, timeout=None, cwd=None)

        assert exc.value.exit_code == 0

    def test_cwd_must_be_directory(self, tmp_path: Path) -> None:
        missing = tmp_path / "nope"

        with pytest.raises(typer.Exit) as exc:
            cli_app._main(version=False, verbose=False, handler=None, timeout=None, cwd=missing)

        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)

    def test_options_become_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _clear_env(monkeypatch)

        cli_app._main(version=False, verbose=True, handler="release", timeout=12.5, cwd=tmp_path)

        ctx = cli_context.build_context()
        assert ctx.workdir == tmp_path.resolve()
        assert ctx.verbose is True
        assert ctx.handler == "release"
        assert ctx.timeout == 12.5
