"""Tests for rantlog.sync.orchestrator — the pull/write/stage/commit/push sequence."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from rantlog.config import SiteConfig
from rantlog.errors import DocumentIOError, StructureError, SyncError
from rantlog.sync.models import TRANSITIONS, SyncMode, SyncState
from rantlog.sync.orchestrator import SyncOrchestrator, default_commit_message

NOW = datetime(2024, 1, 5, 15, 7, 42)


@pytest.fixture
def site(tmp_path) -> SiteConfig:
    return SiteConfig(path=tmp_path, file="rants.qmd", branch="gh-pages")


@pytest.fixture
def mutate() -> MagicMock:
    return MagicMock(return_value="written")


class TestSyncMode:
    def test_flags(self):
        assert not SyncMode.NONE.stages
        assert SyncMode.STAGE.stages and not SyncMode.STAGE.commits
        assert SyncMode.COMMIT.commits and not SyncMode.COMMIT.pushes
        assert SyncMode.PUBLISH.pulls and SyncMode.PUBLISH.pushes

    def test_only_publish_pulls(self):
        assert [m for m in SyncMode if m.pulls] == [SyncMode.PUBLISH]


class TestHappyPaths:
    def test_write_only(self, site, fake_vcs_class, mutate):
        vcs = fake_vcs_class()
        outcome = SyncOrchestrator(site, vcs).run(mutate, SyncMode.NONE)

        mutate.assert_called_once_with()
        assert vcs.calls == []
        assert outcome.state is SyncState.WRITTEN
        assert outcome.history == [SyncState.CLEAN, SyncState.WRITTEN]
        assert outcome.result == "written"

    def test_stage_only(self, site, fake_vcs_class, mutate):
        vcs = fake_vcs_class()
        outcome = SyncOrchestrator(site, vcs).run(mutate, SyncMode.STAGE)

        assert vcs.operations == ["status", "add"]
        assert outcome.state is SyncState.STAGED

    def test_commit(self, site, fake_vcs_class, mutate):
        vcs = fake_vcs_class()
        outcome = SyncOrchestrator(site, vcs).run(mutate, SyncMode.COMMIT, now=NOW)

        assert vcs.calls == [
            ("status", "rants.qmd"),
            ("add", "rants.qmd"),
            ("commit", "Add rant: 2024-01-05 15:07:42"),
        ]
        assert outcome.state is SyncState.COMMITTED
        assert outcome.commit_message == "Add rant: 2024-01-05 15:07:42"
        assert vcs.committed_paths == ["rants.qmd"]

    def test_publish_full_sequence(self, site, fake_vcs_class):
        vcs = fake_vcs_class()
        order: list[str] = []

        def mutate() -> str:
            order.append(f"write after {vcs.operations}")
            return "ok"

        outcome = SyncOrchestrator(site, vcs).run(
            mutate, SyncMode.PUBLISH, message="custom message"
        )

        assert order == ["write after ['pull']"]
        assert vcs.calls == [
            ("pull", "gh-pages"),
            ("status", "rants.qmd"),
            ("add", "rants.qmd"),
            ("commit", "custom message"),
            ("push", "gh-pages"),
        ]
        assert outcome.state is SyncState.PUSHED
        assert outcome.history == [
            SyncState.CLEAN,
            SyncState.PULLED,
            SyncState.WRITTEN,
            SyncState.STAGED,
            SyncState.COMMITTED,
            SyncState.PUSHED,
        ]

    def test_push_targets_configured_branch(self, tmp_path, fake_vcs_class, mutate):
        vcs = fake_vcs_class()
        site = SiteConfig(path=tmp_path, branch="release")
        SyncOrchestrator(site, vcs).run(mutate, SyncMode.PUBLISH)

        assert ("pull", "release") in vcs.calls
        assert ("push", "release") in vcs.calls

    def test_no_changes_stops_after_write(self, site, fake_vcs_class, mutate):
        vcs = fake_vcs_class(status_output="  \n")
        outcome = SyncOrchestrator(site, vcs).run(mutate, SyncMode.PUBLISH)

        assert vcs.operations == ["pull", "status"]
        assert outcome.state is SyncState.WRITTEN
        assert outcome.unchanged is True


class TestAborts:
    def test_pull_failure_skips_everything(self, site, fake_vcs_class, mutate):
        vcs = fake_vcs_class(fail_on="pull")
        orchestrator = SyncOrchestrator(site, vcs)

        with pytest.raises(SyncError) as excinfo:
            orchestrator.run(mutate, SyncMode.PUBLISH)

        assert excinfo.value.stage == "pull"
        mutate.assert_not_called()
        assert vcs.operations == ["pull"]
        assert orchestrator.state is SyncState.ABORTED
        assert orchestrator.failed_stage == "pull"
        assert orchestrator.result is None

    @pytest.mark.parametrize("stage", ["status", "add", "commit", "push"])
    def test_failure_after_write_keeps_result(self, site, fake_vcs_class, mutate, stage):
        vcs = fake_vcs_class(fail_on=stage)
        orchestrator = SyncOrchestrator(site, vcs)

        with pytest.raises(SyncError):
            orchestrator.run(mutate, SyncMode.PUBLISH)

        mutate.assert_called_once()
        assert vcs.operations[-1] == stage
        assert orchestrator.state is SyncState.ABORTED
        assert orchestrator.failed_stage == stage
        assert orchestrator.result == "written"
        assert SyncState.WRITTEN in orchestrator.history

    def test_commit_failure_does_not_push(self, site, fake_vcs_class, mutate):
        vcs = fake_vcs_class(fail_on="commit")
        with pytest.raises(SyncError):
            SyncOrchestrator(site, vcs).run(mutate, SyncMode.PUBLISH)
        assert "push" not in vcs.operations

    @pytest.mark.parametrize("error", [StructureError("no container"), DocumentIOError("ro")])
    def test_mutate_failure(self, site, fake_vcs_class, error):
        vcs = fake_vcs_class()
        orchestrator = SyncOrchestrator(site, vcs)

        with pytest.raises(type(error)):
            orchestrator.run(MagicMock(side_effect=error), SyncMode.PUBLISH)

        assert vcs.operations == ["pull"]
        assert orchestrator.state is SyncState.ABORTED
        assert orchestrator.failed_stage == "write"

    def test_no_retry(self, site, fake_vcs_class, mutate):
        vcs = fake_vcs_class(fail_on="push")
        with pytest.raises(SyncError):
            SyncOrchestrator(site, vcs).run(mutate, SyncMode.PUBLISH)
        assert vcs.operations.count("push") == 1


class TestStateMachine:
    def test_run_resets_state(self, site, fake_vcs_class, mutate):
        orchestrator = SyncOrchestrator(site, fake_vcs_class(fail_on="pull"))
        with pytest.raises(SyncError):
            orchestrator.run(mutate, SyncMode.PUBLISH)

        orchestrator._vcs = fake_vcs_class()
        outcome = orchestrator.run(mutate, SyncMode.NONE)
        assert outcome.state is SyncState.WRITTEN
        assert outcome.failed_stage is None

    def test_terminal_states_have_no_exits(self):
        assert TRANSITIONS[SyncState.PUSHED] == frozenset()
        assert TRANSITIONS[SyncState.ABORTED] == frozenset()

    def test_illegal_transition(self, site, fake_vcs_class):
        orchestrator = SyncOrchestrator(site, fake_vcs_class())
        with pytest.raises(RuntimeError, match="illegal"):
            orchestrator._advance(SyncState.PUSHED)


class TestDefaultCommitMessage:
    def test_format(self):
        assert default_commit_message(NOW) == "Add rant: 2024-01-05 15:07:42"

    def test_uses_clock_when_missing(self):
        assert default_commit_message().startswith("Add rant: ")
