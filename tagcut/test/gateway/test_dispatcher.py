"""Tests for gateway/dispatcher.py.

Handlers here are tiny Python programs run with the current interpreter.
"""

from __future__ import annotations

import json
import stat
import sys
import textwrap
from pathlib import Path

import pytest

from tagcut.core.result import Err, Ok
from tagcut.gateway.dispatcher import Dispatcher, TransportError, builtin_handler_command, invoke
from tagcut.protocol.messages import ReleaseRequest, RequestContext

ERROR_RESPONSE = {
    "status": "error",
    "metadata": {"handler": "release", "version": "0.3.0", "command": "release", "timestamp": "t"},
    "error": {"code": "VERSION_VIOLATION", "message": "local version 1.2.2 is smaller than 1.3.0"},
}


def _request(tmp_path: Path, command: str = "release") -> ReleaseRequest:
    return ReleaseRequest(command=command, context=RequestContext(working_dir=str(tmp_path)))


def _handler(body: str) -> list[str]:
    return [sys.executable, "-c", textwrap.dedent(body)]


class TestInvoke:
    def test_success_with_side_channel_logs(self, tmp_path: Path) -> None:
        handler = _handler(
            """
            import json, sys
            req = json.load(sys.stdin)
            sys.stderr.write("10:00:00 [exec] handling " + req["command"] + "\\n")
            json.dump({"status": "success",
                       "metadata": {"handler": "release", "version": "0", "command": req["command"]},
                       "data": {"echo": req["command"]}}, sys.stdout)
            """
        )

        result = invoke(handler, _request(tmp_path, "history"))

        assert isinstance(result, Ok)
        response = result.value
        assert response.ok
        assert response.data == {"echo": "history"}
        assert [(e.category, e.message) for e in response.logs] == [("exec", "handling history")]

    def test_non_zero_exit_with_error_response(self, tmp_path: Path) -> None:
        handler = _handler(
            f"""
            import sys
            sys.stdin.read()
            sys.stderr.write("10:00:00 [guard] error: version violation\\n")
            sys.stdout.write({json.dumps(json.dumps(ERROR_RESPONSE))})
            sys.exit(1)
            """
        )

        result = invoke(handler, _request(tmp_path))

        assert isinstance(result, Ok)
        response = result.value
        assert response.error is not None
        assert response.error.code == "VERSION_VIOLATION"
        assert response.logs[0].level == "error"

    def test_non_zero_exit_without_response(self, tmp_path: Path) -> None:
        handler = _handler(
            """
            import sys
            sys.stderr.write("Traceback: kaboom\\n")
            sys.exit(3)
            """
        )

        result = invoke(handler, _request(tmp_path))

        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert "exit 3" in result.error.message
        assert "kaboom" in str(result.error)

    def test_garbage_stdout(self, tmp_path: Path) -> None:
        result = invoke(_handler("print('not json')"), _request(tmp_path))

        assert isinstance(result, Err)
        assert result.error.message.startswith("invalid handler response")

    def test_empty_stdout(self, tmp_path: Path) -> None:
        result = invoke(_handler("pass"), _request(tmp_path))

        assert isinstance(result, Err)
        assert result.error.message == "handler produced no response"

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = invoke(["definitely-not-a-handler-12345"], _request(tmp_path))

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout_is_a_transport_error(self, tmp_path: Path) -> None:
        result = invoke(_handler("import time; time.sleep(5)"), _request(tmp_path), timeout=0.3)

        assert isinstance(result, Err)
        assert "timed out" in result.error.message

    def test_runs_in_request_working_dir(self, tmp_path: Path) -> None:
        handler = _handler(
            """
            import json, os, sys
            sys.stdin.read()
            json.dump({"status": "success", "metadata": {"handler": "h"},
                       "data": {"cwd": os.getcwd()}}, sys.stdout)
            """
        )

        response = invoke(handler, _request(tmp_path)).unwrap()

        assert response.data is not None
        assert Path(str(response.data["cwd"])).resolve() == tmp_path.resolve()


def test_builtin_handler_command() -> None:
    assert builtin_handler_command() == [sys.executable, "-m", "tagcut.handler"]


def test_transport_error_str_without_stderr() -> None:
    assert str(TransportError(message="handler produced no response")) == "handler produced no response"


def _install(root: Path, name: str, script: str, manifest: dict[str, object] | None = None) -> Path:
    d = root / name
    d.mkdir(parents=True)
    path = d / f"handler-{name}"
    path.write_text(f"#!{sys.executable}\n{textwrap.dedent(script)}", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    if manifest is not None:
        (d / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")
    return path


class TestDispatcher:
    def test_no_handler_dir(self) -> None:
        result = Dispatcher(None).find_handler("release")

        assert isinstance(result, Err)
        assert "no handler directory" in result.error.message

    def test_from_env(self, tmp_path: Path) -> None:
        assert Dispatcher.from_env({"TAGCUT_HANDLER_DIR": str(tmp_path)}).handler_dir == tmp_path
        assert Dispatcher.from_env({}).handler_dir is None

    def test_find_handler(self, tmp_path: Path) -> None:
        path = _install(tmp_path, "release", "pass\n")

        assert Dispatcher(tmp_path).find_handler("release") == Ok(path)
        assert isinstance(Dispatcher(tmp_path).find_handler("deploy"), Err)

    @pytest.mark.skipif(sys.platform == "win32", reason="shebang handlers")
    def test_dispatch_runs_installed_handler(self, tmp_path: Path) -> None:
        handlers = tmp_path / "handlers"
        _install(
            handlers,
            "release",
            """
            import json, sys
            req = json.load(sys.stdin)
            json.dump({"status": "success", "metadata": {"handler": "release"},
                       "data": {"args": req["args"]}}, sys.stdout)
            """,
        )
        request = ReleaseRequest(
            command="release", context=RequestContext(working_dir=str(tmp_path)), args=("minor",)
        )

        response = Dispatcher(handlers).dispatch("release", request).unwrap()

        assert response.data == {"args": ["minor"]}

    def test_list_manifests(self, tmp_path: Path) -> None:
        _install(tmp_path, "b-release", "pass\n", {"name": "b-release", "version": "1.0.0", "commands": []})
        _install(tmp_path, "a-deploy", "pass\n", {"name": "a-deploy", "version": "0.1.0"})
        _install(tmp_path, "broken", "pass\n")
        (tmp_path / "broken" / "manifest.json").write_text("{", encoding="utf-8")
        _install(tmp_path, "bare", "pass\n")

        names = [m.name for m in Dispatcher(tmp_path).list_manifests()]

        assert names == ["a-deploy", "b-release"]

    def test_list_manifests_without_dir(self, tmp_path: Path) -> None:
        assert Dispatcher(tmp_path / "missing").list_manifests() == []

    def test_list_manifests_skips_undecodable_manifest(self, tmp_path: Path) -> None:
        _install(tmp_path, "release", "pass\n", {"name": "release", "version": "1.0.0"})
        _install(tmp_path, "garbled", "pass\n")
        (tmp_path / "garbled" / "manifest.json").write_bytes(b'{"name": "\xff\xfe"}')

        names = [m.name for m in Dispatcher(tmp_path).list_manifests()]

        assert names == ["release"]
