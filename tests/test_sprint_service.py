"""Tests for the sprint lifecycle"""

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scrumboard.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from scrumboard.models import Sprint, SprintStatus
from scrumboard.storage import session_scope
from scrumboard.storage.sprint_service import VALID_TRANSITIONS, SprintService, validate_transition


def test_create_sprint_is_planned(services, alice, project):
    sprint = services.sprints.create_sprint(
        alice, project.id, "Sprint 1", goal="Ship checkout",
        start_date=date(2026, 3, 2), end_date=date(2026, 3, 13),
    )

    assert sprint.status == SprintStatus.PLANNED
    assert sprint.project_id == project.id
    assert sprint.goal == "Ship checkout"


def test_create_sprint_rejects_inverted_dates(services, alice, project):
    with pytest.raises(ValidationError):
        services.sprints.create_sprint(
            alice, project.id, "Backwards", start_date=date(2026, 3, 13), end_date=date(2026, 3, 2)
        )


def test_create_sprint_requires_membership(services, bob, project):
    with pytest.raises(ForbiddenError):
        services.sprints.create_sprint(bob, project.id, "Nope")


def test_transition_table():
    assert validate_transition(SprintStatus.PLANNED, SprintStatus.ACTIVE)
    assert validate_transition(SprintStatus.PLANNED, SprintStatus.COMPLETED)
    assert validate_transition(SprintStatus.ACTIVE, SprintStatus.COMPLETED)
    assert not validate_transition(SprintStatus.ACTIVE, SprintStatus.PLANNED)
    assert VALID_TRANSITIONS[SprintStatus.COMPLETED] == set()


def test_start_sprint_demotes_previous_active(services, alice, project):
    """S1 active, start S2: S1 completed, S2 active"""
    s1 = services.sprints.create_sprint(alice, project.id, "S1")
    s2 = services.sprints.create_sprint(alice, project.id, "S2")

    services.sprints.start_sprint(alice, s1.id)
    started = services.sprints.start_sprint(alice, s2.id)

    assert started.status == SprintStatus.ACTIVE
    assert services.sprints.get_sprint(alice, s1.id).status == SprintStatus.COMPLETED
    assert services.sprints.get_active_sprint(alice, project.id).id == s2.id


def test_at_most_one_active_sprint(services, alice, project):
    sprints = [services.sprints.create_sprint(alice, project.id, f"S{n}") for n in range(4)]
    for sprint in sprints:
        services.sprints.start_sprint(alice, sprint.id)

    active = [s for s in services.sprints.list_sprints(alice, project.id) if s.status == SprintStatus.ACTIVE]
    assert [s.id for s in active] == [sprints[-1].id]


def test_start_sprint_leaves_other_projects_alone(services, alice, project):
    other = services.projects.create_project(alice, name="Other", key="OTH")
    mine = services.sprints.create_sprint(alice, project.id, "Mine")
    theirs = services.sprints.create_sprint(alice, other.id, "Theirs")

    services.sprints.start_sprint(alice, theirs.id)
    services.sprints.start_sprint(alice, mine.id)

    assert services.sprints.get_sprint(alice, theirs.id).status == SprintStatus.ACTIVE


def test_start_active_sprint_is_noop(services, alice, project):
    sprint = services.sprints.create_sprint(alice, project.id, "S1")
    services.sprints.start_sprint(alice, sprint.id)

    again = services.sprints.start_sprint(alice, sprint.id)
    assert again.status == SprintStatus.ACTIVE


def test_start_completed_sprint_conflicts(services, alice, project):
    sprint = services.sprints.create_sprint(alice, project.id, "S1")
    services.sprints.complete_sprint(alice, sprint.id)

    with pytest.raises(ConflictError):
        services.sprints.start_sprint(alice, sprint.id)


def test_complete_sprint_is_idempotent(services, alice, project):
    sprint = services.sprints.create_sprint(alice, project.id, "S1")

    assert services.sprints.complete_sprint(alice, sprint.id).status == SprintStatus.COMPLETED
    assert services.sprints.complete_sprint(alice, sprint.id).status == SprintStatus.COMPLETED


def test_second_active_sprint_rejected_by_index(services, alice, project):
    """Direct writes that bypass start_sprint still cannot create two active sprints"""
    s1 = services.sprints.create_sprint(alice, project.id, "S1")
    services.sprints.create_sprint(alice, project.id, "S2")
    services.sprints.start_sprint(alice, s1.id)

    with pytest.raises(IntegrityError):
        with session_scope(services.session_factory) as session:
            session.query(Sprint).filter(Sprint.name == "S2").update(
                {Sprint.status: SprintStatus.ACTIVE}, synchronize_session=False
            )


def test_update_sprint_fields(services, alice, project):
    sprint = services.sprints.create_sprint(alice, project.id, "S1", start_date=date(2026, 3, 2))

    updated = services.sprints.update_sprint(
        alice, sprint.id, {"name": "Sprint One", "end_date": date(2026, 3, 16)}
    )

    assert updated.name == "Sprint One"
    assert updated.start_date == date(2026, 3, 2)
    assert updated.end_date == date(2026, 3, 16)
    assert updated.status == SprintStatus.PLANNED


def test_update_sprint_rejects_status_and_bad_dates(services, alice, project):
    sprint = services.sprints.create_sprint(alice, project.id, "S1", start_date=date(2026, 3, 2))

    with pytest.raises(ValidationError):
        services.sprints.update_sprint(alice, sprint.id, {"status": "active"})
    with pytest.raises(ValidationError):
        services.sprints.update_sprint(alice, sprint.id, {"end_date": date(2026, 2, 1)})


def test_delete_sprint_detaches_issues(services, alice, project, make_issue):
    sprint = services.sprints.create_sprint(alice, project.id, "S1")
    in_sprint = make_issue("in sprint", sprint_id=sprint.id)
    elsewhere = make_issue("backlog")

    assert services.sprints.delete_sprint(alice, sprint.id) is True

    assert services.issues.get_issue(alice, in_sprint.id).sprint_id is None
    assert services.issues.get_issue(alice, elsewhere.id).sprint_id is None
    with pytest.raises(NotFoundError):
        services.sprints.get_sprint(alice, sprint.id)


def test_delete_missing_sprint_returns_false(services, alice):
    assert services.sprints.delete_sprint(alice, 4242) is False


def test_get_active_sprint_none(services, alice, project):
    services.sprints.create_sprint(alice, project.id, "planned only")
    assert services.sprints.get_active_sprint(alice, project.id) is None


def test_list_sprint_issues(services, alice, project, make_issue):
    sprint = services.sprints.create_sprint(alice, project.id, "S1")
    issue = make_issue(sprint_id=sprint.id)
    make_issue("backlog")

    assert [i.id for i in services.sprints.list_sprint_issues(alice, sprint.id)] == [issue.id]


def test_start_sprint_is_audited(services, alice, project):
    s1 = services.sprints.create_sprint(alice, project.id, "S1")
    s2 = services.sprints.create_sprint(alice, project.id, "S2")
    services.sprints.start_sprint(alice, s1.id)
    services.sprints.start_sprint(alice, s2.id)

    entry = services.audit.list_entries(limit=1, action="SPRINT_START")[0]
    assert entry.details_dict["sprint_id"] == s2.id
    assert entry.details_dict["completed_sprints"] == [s1.id]


def _flush_then_fail(session, obj):
    session.flush()
    raise RuntimeError("database went away")


def test_failed_start_rolls_back_demotion(services, alice, project, make_issue, monkeypatch):
    s1 = services.sprints.create_sprint(alice, project.id, "S1")
    s2 = services.sprints.create_sprint(alice, project.id, "S2")
    services.sprints.start_sprint(alice, s1.id)
    issue = make_issue(sprint_id=s1.id)

    monkeypatch.setattr(SprintService, "_detach", staticmethod(_flush_then_fail))
    with pytest.raises(RuntimeError):
        services.sprints.start_sprint(alice, s2.id)
    monkeypatch.undo()

    assert services.sprints.get_sprint(alice, s1.id).status == SprintStatus.ACTIVE
    assert services.sprints.get_sprint(alice, s2.id).status == SprintStatus.PLANNED
    assert services.issues.get_issue(alice, issue.id).sprint_id == s1.id
    assert services.audit.list_entries(action="SPRINT_START", limit=1)[0].details_dict["sprint_id"] == s1.id


def test_failed_delete_keeps_sprint_issues(services, alice, project, make_issue, monkeypatch):
    sprint = services.sprints.create_sprint(alice, project.id, "S1")
    services.sprints.start_sprint(alice, sprint.id)
    issues = [make_issue("one", sprint_id=sprint.id), make_issue("two", sprint_id=sprint.id)]

    def failing_delete(session, instance):
        raise RuntimeError("database went away")

    monkeypatch.setattr(Session, "delete", failing_delete)
    with pytest.raises(RuntimeError):
        services.sprints.delete_sprint(alice, sprint.id)
    monkeypatch.undo()

    assert services.sprints.get_sprint(alice, sprint.id).status == SprintStatus.ACTIVE
    for issue in issues:
        assert services.issues.get_issue(alice, issue.id).sprint_id == sprint.id
