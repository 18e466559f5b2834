import pytest
from app.exceptions import StatusResolutionException
from app.services.imports.status_resolver import StatusCandidate, StatusResolver


def test_resolve_matches_system_names(session, seeded):
    resolver = StatusResolver(session)

    assert resolver.resolve("passed", seeded.project_id) == seeded.statuses["passed"]
    assert resolver.resolve("failed", seeded.project_id) == seeded.statuses["failed"]
    assert resolver.resolve("error", seeded.project_id) == seeded.statuses["error"]
    assert resolver.resolve("skipped", seeded.project_id) == seeded.statuses["skipped"]


def test_resolve_matches_display_name_and_alias(session, bare_project, status_factory):
    by_name = status_factory(bare_project.id, "custom_fail", name="Failure")
    by_alias = status_factory(bare_project.id, "custom_skip", name="Not Run", aliases="Skipped Test,Blocked")
    resolver = StatusResolver(session)

    assert resolver.resolve("failed", bare_project.id) == by_name
    assert resolver.resolve("skipped", bare_project.id) == by_alias


def test_resolve_ignores_other_scopes_and_disabled(session, bare_project, status_factory):
    status_factory(bare_project.id, "failed", scopes=("manual",))
    untested = status_factory(bare_project.id, "untested")
    resolver = StatusResolver(session)

    assert resolver.resolve("failed", bare_project.id) == untested


def test_resolve_passed_falls_back_to_success_status(session, bare_project, status_factory):
    success = status_factory(bare_project.id, "green", name="Green", is_success=True)
    status_factory(bare_project.id, "untested")
    resolver = StatusResolver(session)

    assert resolver.resolve("passed", bare_project.id) == success


def test_resolve_unmatched_falls_back_to_untested(session, bare_project, status_factory):
    status_factory(bare_project.id, "green", name="Green", is_success=True)
    untested = status_factory(bare_project.id, "untested")
    resolver = StatusResolver(session)

    assert resolver.resolve("error", bare_project.id) == untested


def test_resolve_without_automation_statuses_uses_project_status(session, bare_project, status_factory):
    """自動テスト用ステータスが1つもなくても必ずステータスが決まる"""
    first = status_factory(bare_project.id, "blocked", scopes=("manual",), order=0)
    status_factory(bare_project.id, "retest", scopes=("manual",), order=1)
    resolver = StatusResolver(session)

    for status in ("passed", "failed", "error", "skipped"):
        assert resolver.resolve(status, bare_project.id) == first


def test_resolve_prefers_untested_in_any_scope(session, bare_project, status_factory):
    status_factory(bare_project.id, "blocked", scopes=("manual",), order=0)
    untested = status_factory(bare_project.id, "untested", scopes=("manual",), order=1)
    resolver = StatusResolver(session)

    assert resolver.resolve("failed", bare_project.id) == untested


def test_resolve_project_without_statuses_raises(session, bare_project):
    resolver = StatusResolver(session)

    with pytest.raises(StatusResolutionException):
        resolver.resolve("passed", bare_project.id)


def test_match_status_has_no_fallback(session, bare_project, status_factory):
    status_factory(bare_project.id, "untested")
    resolver = StatusResolver(session)

    assert resolver.match_status("failed", bare_project.id) is None


def test_candidates_are_loaded_once_per_project(session, seeded, status_queries):
    """同じインポート中はコミットを挟んでもステータスを再読み込みしない"""
    resolver = StatusResolver(session)

    assert resolver.resolve("passed", seeded.project_id) == seeded.statuses["passed"]
    session.commit()
    assert resolver.resolve("failed", seeded.project_id) == seeded.statuses["failed"]
    session.commit()
    assert resolver.resolve("skipped", seeded.project_id) == seeded.statuses["skipped"]
    assert resolver.match_status("error", seeded.project_id).id == seeded.statuses["error"]

    assert len(status_queries) == 1


def test_match_status_returns_detached_values(session, seeded):
    resolver = StatusResolver(session)
    matched = resolver.match_status("passed", seeded.project_id)
    session.commit()
    session.close()

    assert isinstance(matched, StatusCandidate)
    assert matched.system_name == "passed"
    assert matched.aliases == ("pass", "success")
    assert matched.is_success is True
