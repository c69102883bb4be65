"""Tests for the gate controller state machine."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import AWS_KEY, GITHUB_TOKEN, FakeLocator, FakeRunner, filesystem_record, git_record

from leakgate.config import GateConfig
from leakgate.engine.runner import EngineInvocationError
from leakgate.gate import (
    FailFindings,
    FailNoEngine,
    FailSystemError,
    GateController,
    GateState,
    Pass,
    run_gate,
)


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A working tree with two staged files on disk."""
    (tmp_path / "config.py").write_text(f"AWS_KEY = '{AWS_KEY}'\n")
    (tmp_path / "README.md").write_text("# demo\n")
    return tmp_path


def _controller(
    repo: Path,
    runner: FakeRunner,
    handle,
    staged: tuple[Path, ...] = (Path("README.md"), Path("config.py")),
    config: GateConfig | None = None,
) -> GateController:
    return GateController(
        config=config or GateConfig(),
        locator=FakeLocator(handle),
        list_staged=lambda _cwd: staged,
        runner_factory=lambda _handle, _timeout: runner,
        cwd=repo,
    )


def _per_file_hit_on_config(args, _stdin):
    return filesystem_record(AWS_KEY) if args[1] == "config.py" else ""


class TestGateResults:
    """Tests for GateResult exit codes."""

    def test_exit_codes(self):
        assert Pass().exit_code == 0
        assert FailNoEngine().exit_code == 1
        assert FailSystemError(cause="boom").exit_code == 1

    def test_pass_is_passed(self):
        assert Pass().passed is True
        assert FailNoEngine().passed is False


class TestGateController:
    """Tests for strategy sequencing and short-circuits."""

    def test_empty_staged_set_passes_without_scanning(self, repo, engine_handle):
        runner = FakeRunner()
        controller = _controller(repo, runner, engine_handle, staged=())

        result = controller.run()

        assert result == Pass(stage=GateState.NO_CHANGES)
        assert result.exit_code == 0
        assert runner.calls == []
        assert controller.history[-1] == GateState.NO_CHANGES

    def test_missing_engine_fails_before_anything_else(self, repo):
        runner = FakeRunner()
        staged_calls: list[object] = []
        controller = GateController(
            locator=FakeLocator(None),
            list_staged=lambda cwd: staged_calls.append(cwd) or (Path("config.py"),),
            runner_factory=lambda _h, _t: runner,
            cwd=repo,
        )

        result = controller.run()

        assert isinstance(result, FailNoEngine)
        assert result.exit_code == 1
        assert runner.calls == []
        assert staged_calls == []
        assert controller.history == [
            GateState.START,
            GateState.LOCATING_ENGINE,
            GateState.NO_ENGINE,
        ]

    def test_per_file_hit_short_circuits_later_strategies(self, repo, engine_handle):
        runner = FakeRunner(
            {
                "per-file": _per_file_hit_on_config,
                "verified": filesystem_record(AWS_KEY, verified=True),
                "diff": git_record(GITHUB_TOKEN),
            }
        )
        controller = _controller(repo, runner, engine_handle)

        result = controller.run()

        assert isinstance(result, FailFindings)
        assert result.stage == GateState.SCANNING_PER_FILE
        assert result.findings[0].source_file == "config.py"
        assert runner.calls_for("verified") == []
        assert runner.calls_for("diff") == []

    def test_per_file_stops_at_first_hit(self, repo, engine_handle):
        (repo / "later.py").write_text("x")
        runner = FakeRunner({"per-file": filesystem_record(AWS_KEY)})
        staged = (Path("config.py"), Path("README.md"), Path("later.py"))
        controller = _controller(repo, runner, engine_handle, staged=staged)

        controller.run()

        assert [call[0][1] for call in runner.calls_for("per-file")] == ["config.py"]

    def test_verified_hit_skips_diff(self, repo, engine_handle):
        runner = FakeRunner({"verified": filesystem_record(AWS_KEY, verified=True)})
        controller = _controller(repo, runner, engine_handle)

        result = controller.run()

        assert isinstance(result, FailFindings)
        assert result.stage == GateState.SCANNING_VERIFIED
        assert result.findings[0].verified is True
        assert len(runner.calls_for("per-file")) == 2
        assert runner.calls_for("diff") == []

    def test_diff_hit_fails_last(self, repo, engine_handle, monkeypatch):
        monkeypatch.setattr(
            "leakgate.scanner.strategies.staged_diff", lambda _cwd=None: b"+TOKEN=ghp\n"
        )
        runner = FakeRunner({"diff": git_record(GITHUB_TOKEN)})
        controller = _controller(repo, runner, engine_handle)

        result = controller.run()

        assert isinstance(result, FailFindings)
        assert result.stage == GateState.SCANNING_DIFF
        assert controller.history[-2:] == [GateState.SCANNING_DIFF, GateState.FINDINGS_FOUND]

    def test_all_clean_passes(self, repo, engine_handle, monkeypatch, clean_output):
        monkeypatch.setattr(
            "leakgate.scanner.strategies.staged_diff", lambda _cwd=None: b"+hello\n"
        )
        runner = FakeRunner(
            {"per-file": clean_output, "verified": clean_output, "diff": clean_output}
        )
        controller = _controller(repo, runner, engine_handle)

        result = controller.run()

        assert result == Pass(stage=GateState.ALL_CLEAR)
        assert result.exit_code == 0
        assert controller.history == [
            GateState.START,
            GateState.LOCATING_ENGINE,
            GateState.ENUMERATING_CHANGES,
            GateState.SCANNING_PER_FILE,
            GateState.SCANNING_VERIFIED,
            GateState.SCANNING_DIFF,
            GateState.ALL_CLEAR,
        ]

    def test_engine_launch_failures_do_not_fail_gate(self, repo, engine_handle, monkeypatch):
        monkeypatch.setattr(
            "leakgate.scanner.strategies.staged_diff", lambda _cwd=None: b"+hello\n"
        )
        error = EngineInvocationError("permission denied")
        runner = FakeRunner({"per-file": error, "verified": error, "diff": error})
        controller = _controller(repo, runner, engine_handle)

        result = controller.run()

        assert result == Pass(stage=GateState.ALL_CLEAR)

    def test_unparsed_output_blocks_by_default(self, repo, engine_handle):
        runner = FakeRunner({"verified": '{"Raw": "AKIA\n'})
        controller = _controller(repo, runner, engine_handle)

        result = controller.run()

        assert isinstance(result, FailFindings)
        assert result.outcome.unparsed_hits == 1

    def test_unparsed_output_can_be_ignored(self, repo, engine_handle, monkeypatch):
        monkeypatch.setattr("leakgate.scanner.strategies.staged_diff", lambda _cwd=None: b"")
        runner = FakeRunner({"verified": '{"Raw": "AKIA\n'})
        config = GateConfig(block_on_unparsed=False)
        controller = _controller(repo, runner, engine_handle, config=config)

        assert controller.run() == Pass(stage=GateState.ALL_CLEAR)

    def test_disabled_strategies_are_skipped(self, repo, engine_handle):
        runner = FakeRunner()
        config = GateConfig(strategies=["per-file"])
        controller = _controller(repo, runner, engine_handle, config=config)

        result = controller.run()

        assert result == Pass(stage=GateState.ALL_CLEAR)
        assert runner.calls_for("verified") == []
        assert runner.calls_for("diff") == []

    def test_unexpected_error_becomes_system_error(self, repo, engine_handle):
        def explode(_cwd):
            raise RuntimeError("index.lock exists")

        controller = GateController(
            locator=FakeLocator(engine_handle),
            list_staged=explode,
            cwd=repo,
        )

        result = controller.run()

        assert result == FailSystemError(cause="index.lock exists")
        assert result.exit_code == 1

    def test_running_twice_gives_same_result(self, repo, engine_handle, monkeypatch):
        monkeypatch.setattr(
            "leakgate.scanner.strategies.staged_diff", lambda _cwd=None: b"+x\n"
        )
        runner = FakeRunner({"verified": filesystem_record(AWS_KEY, verified=True)})
        controller = _controller(repo, runner, engine_handle)

        first = controller.run()
        first_history = list(controller.history)
        second = controller.run()

        assert first == second
        assert controller.history == first_history

    def test_staged_set_is_enumerated_once(self, repo, engine_handle, clean_output):
        calls: list[object] = []
        runner = FakeRunner({"per-file": clean_output})
        controller = GateController(
            config=GateConfig(strategies=["per-file"]),
            locator=FakeLocator(engine_handle),
            list_staged=lambda cwd: calls.append(cwd) or (Path("config.py"),),
            runner_factory=lambda _h, _t: runner,
            cwd=repo,
        )

        controller.run()

        assert calls == [repo]

    def test_progress_messages(self, repo, engine_handle):
        messages: list[str] = []
        controller = _controller(repo, FakeRunner(), engine_handle, staged=())
        controller.progress = messages.append

        controller.run()

        assert any("Using override TruffleHog" in m for m in messages)
        assert "No staged files to check" in messages


def test_run_gate_wrapper(repo, engine_handle):
    result = run_gate(locator=FakeLocator(None), cwd=repo)
    assert isinstance(result, FailNoEngine)


class TestRepositoryRoot:
    """Staged paths are relative to the repository root, not the process cwd."""

    def test_subdirectory_run_scans_from_root(self, repo, engine_handle, monkeypatch):
        sub = repo / "sub"
        sub.mkdir()
        monkeypatch.chdir(sub)
        monkeypatch.setattr("leakgate.gate.get_git_root", lambda _path: repo)
        staged_calls: list[object] = []
        runner = FakeRunner({"per-file": _per_file_hit_on_config})
        controller = GateController(
            config=GateConfig(strategies=["per-file", "verified"]),
            locator=FakeLocator(engine_handle),
            list_staged=lambda cwd: staged_calls.append(cwd) or (Path("config.py"),),
            runner_factory=lambda _h, _t: runner,
        )

        result = controller.run()

        assert isinstance(result, FailFindings)
        assert result.stage == GateState.SCANNING_PER_FILE
        assert staged_calls == [repo]
        assert controller.root == repo
        assert runner.cwds[0] == str(repo)

    def test_explicit_cwd_skips_root_lookup(self, repo, engine_handle, monkeypatch):
        def fail(_path):
            raise AssertionError("root lookup should not run")

        monkeypatch.setattr("leakgate.gate.get_git_root", fail)
        controller = _controller(repo, FakeRunner(), engine_handle, staged=())

        assert controller.run() == Pass(stage=GateState.NO_CHANGES)
        assert controller.root == repo

    def test_outside_repository_falls_back_to_cwd(self, tmp_path, engine_handle, monkeypatch):
        monkeypatch.setattr("leakgate.gate.get_git_root", lambda _path: None)
        staged_calls: list[object] = []
        controller = GateController(
            locator=FakeLocator(engine_handle),
            list_staged=lambda cwd: staged_calls.append(cwd) or (),
        )

        assert controller.run() == Pass(stage=GateState.NO_CHANGES)
        assert staged_calls == [None]
