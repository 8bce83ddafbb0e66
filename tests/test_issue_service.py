"""Tests for issue service layer"""

from datetime import date

import pytest

from scrumboard.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from scrumboard.models import IssuePriority, IssueType, SprintStatus, StatusCategory
from scrumboard.storage import BACKLOG, IssueChanges


def test_create_issue_basic(services, alice, project, statuses):
    """Test basic issue creation"""
    issue = services.issues.create_issue(
        alice,
        project_id=project.id,
        title="  Login page  ",
        status_id=statuses["todo"].id,
    )

    assert issue.id is not None
    assert issue.title == "Login page"
    assert issue.type == IssueType.TASK
    assert issue.priority == IssuePriority.MEDIUM
    assert issue.reporter_id == alice.id
    assert issue.sprint_id is None
    # Display fields survive detaching from the session
    assert issue.status_name == "To Do"
    assert issue.status_category == StatusCategory.TODO
    assert issue.reporter_name == "Alice Developer"
    assert issue.assignee_name is None


def test_create_issue_with_all_fields(services, alice, bob, project, statuses):
    services.projects.add_member(alice, project.id, bob.id)
    sprint = services.sprints.create_sprint(alice, project.id, "Sprint 1")

    issue = services.issues.create_issue(
        alice,
        project_id=project.id,
        title="Checkout",
        status_id=statuses["inprogress"].id,
        issue_type=IssueType.STORY,
        priority="high",
        description="As a buyer I want to pay",
        assignee_id=bob.id,
        sprint_id=sprint.id,
        story_points=5,
        start_date=date(2026, 1, 5),
        before_image="uploads/before.png",
    )

    assert issue.type == IssueType.STORY
    assert issue.priority == IssuePriority.HIGH
    assert issue.assignee_name == "bob"
    assert issue.sprint_id == sprint.id
    assert issue.story_points == 5
    assert issue.start_date == date(2026, 1, 5)
    assert issue.before_image == "uploads/before.png"
    assert issue.after_image is None


def test_create_issue_requires_title(services, alice, project, statuses):
    with pytest.raises(ValidationError):
        services.issues.create_issue(alice, project_id=project.id, title="   ", status_id=statuses["todo"].id)


def test_create_issue_with_foreign_status(services, alice, project, statuses):
    """A status of another project is rejected"""
    other = services.projects.create_project(alice, name="Other", key="OTH")
    other_status = services.projects.list_statuses(alice, other.id)[0]

    with pytest.raises(ValidationError):
        services.issues.create_issue(alice, project_id=project.id, title="x", status_id=other_status.id)


def test_create_issue_with_foreign_sprint(services, alice, project, statuses):
    other = services.projects.create_project(alice, name="Other", key="OTH")
    sprint = services.sprints.create_sprint(alice, other.id, "Elsewhere")

    with pytest.raises(ValidationError):
        services.issues.create_issue(
            alice, project_id=project.id, title="x", status_id=statuses["todo"].id, sprint_id=sprint.id
        )


def test_create_issue_in_completed_sprint(services, alice, project, statuses):
    sprint = services.sprints.create_sprint(alice, project.id, "Old")
    services.sprints.complete_sprint(alice, sprint.id)

    with pytest.raises(ConflictError):
        services.issues.create_issue(
            alice, project_id=project.id, title="x", status_id=statuses["todo"].id, sprint_id=sprint.id
        )


def test_create_issue_assignee_must_be_member(services, alice, bob, project, statuses):
    with pytest.raises(ValidationError):
        services.issues.create_issue(
            alice, project_id=project.id, title="x", status_id=statuses["todo"].id, assignee_id=bob.id
        )


def test_create_issue_negative_points(services, alice, project, statuses):
    with pytest.raises(ValidationError):
        services.issues.create_issue(
            alice, project_id=project.id, title="x", status_id=statuses["todo"].id, story_points=-1
        )


def test_non_member_cannot_create_issue(services, bob, project, statuses):
    with pytest.raises(ForbiddenError):
        services.issues.create_issue(bob, project_id=project.id, title="x", status_id=statuses["todo"].id)


def test_get_issue_not_found(services, alice):
    with pytest.raises(NotFoundError):
        services.issues.get_issue(alice, 9999)


def test_get_issue_forbidden_for_non_member(services, bob, make_issue):
    issue = make_issue("Secret")
    with pytest.raises(ForbiddenError):
        services.issues.get_issue(bob, issue.id)


def test_admin_reads_any_issue(services, admin, make_issue):
    issue = make_issue("Visible to admins")
    assert services.issues.get_issue(admin, issue.id).title == "Visible to admins"


def test_update_issue_partial(services, alice, make_issue):
    """Only supplied fields change"""
    issue = make_issue("Original", description="keep me", story_points=3)

    updated = services.issues.update_issue(alice, issue.id, IssueChanges(title="Renamed"))

    assert updated.title == "Renamed"
    assert updated.description == "keep me"
    assert updated.story_points == 3


def test_update_issue_clears_nullable_fields(services, alice, make_issue):
    issue = make_issue("Pointed", description="text", story_points=8)

    updated = services.issues.update_issue(
        alice, issue.id, IssueChanges(description=None, story_points=None)
    )

    assert updated.description is None
    assert updated.story_points is None
    assert updated.title == "Pointed"


def test_update_issue_cannot_clear_required_field(services, alice, make_issue):
    issue = make_issue()
    with pytest.raises(ValidationError):
        services.issues.update_issue(alice, issue.id, IssueChanges(title=None))
    with pytest.raises(ValidationError):
        services.issues.update_issue(alice, issue.id, IssueChanges(status_id=None))


def test_update_issue_validates_references(services, alice, make_issue):
    issue = make_issue()
    other = services.projects.create_project(alice, name="Other", key="OTH")
    other_status = services.projects.list_statuses(alice, other.id)[0]

    with pytest.raises(ValidationError):
        services.issues.update_issue(alice, issue.id, IssueChanges(status_id=other_status.id))


def test_update_issue_keeps_former_member_as_assignee(services, alice, bob, project, make_issue):
    services.projects.add_member(alice, project.id, bob.id)
    issue = make_issue(assignee_id=bob.id)
    services.projects.remove_member(alice, project.id, bob.id)

    updated = services.issues.update_issue(alice, issue.id, IssueChanges(title="Renamed", assignee_id=bob.id))

    assert updated.title == "Renamed"
    assert updated.assignee_id == bob.id

    # A new assignment still has to be a member
    other = make_issue("Other")
    with pytest.raises(ValidationError):
        services.issues.update_issue(alice, other.id, IssueChanges(assignee_id=bob.id))


def test_issue_changes_from_dict_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        IssueChanges.from_dict({"title": "x", "reporter_id": 3})

    changes = IssueChanges.from_dict({"title": "x", "assignee_id": None})
    assert changes.provided() == {"title": "x", "assignee_id": None}


def test_update_status_changes_only_status(services, alice, statuses, make_issue):
    issue = make_issue("Drag me", description="d", story_points=2)

    moved = services.issues.update_status(alice, issue.id, statuses["done"].id)

    assert moved.status_id == statuses["done"].id
    assert moved.status_name == "Done"
    assert moved.title == issue.title
    assert moved.description == issue.description
    assert moved.story_points == issue.story_points
    assert moved.sprint_id == issue.sprint_id
    assert moved.assignee_id == issue.assignee_id
    assert moved.updated_at >= issue.updated_at


def test_update_status_rejects_foreign_status(services, alice, make_issue):
    issue = make_issue()
    other = services.projects.create_project(alice, name="Other", key="OTH")
    other_status = services.projects.list_statuses(alice, other.id)[0]

    with pytest.raises(ValidationError):
        services.issues.update_status(alice, issue.id, other_status.id)


def test_assign_and_remove_from_sprint(services, alice, project, make_issue):
    """Issue goes into a sprint and back to the backlog"""
    sprint = services.sprints.create_sprint(alice, project.id, "Sprint 1")
    issue = make_issue("Movable")

    assigned = services.issues.assign_to_sprint(alice, issue.id, sprint.id)
    assert assigned.sprint_id == sprint.id
    assert [i.id for i in services.issues.list_project_issues(alice, project.id, sprint.id)] == [issue.id]

    removed = services.issues.remove_from_sprint(alice, issue.id)
    assert removed.sprint_id is None
    assert [i.id for i in services.issues.list_project_issues(alice, project.id, BACKLOG)] == [issue.id]


def test_assign_to_completed_sprint_rejected(services, alice, project, make_issue):
    sprint = services.sprints.create_sprint(alice, project.id, "Done sprint")
    services.sprints.complete_sprint(alice, sprint.id)
    issue = make_issue()

    with pytest.raises(ConflictError):
        services.issues.assign_to_sprint(alice, issue.id, sprint.id)


def test_issue_in_completed_sprint_can_leave_it(services, alice, project, make_issue):
    sprint = services.sprints.create_sprint(alice, project.id, "Sprint")
    issue = make_issue(sprint_id=sprint.id)
    services.sprints.complete_sprint(alice, sprint.id)

    assert services.issues.remove_from_sprint(alice, issue.id).sprint_id is None


def test_list_project_issues_newest_first(services, alice, project, make_issue):
    first = make_issue("first")
    second = make_issue("second")

    issues = services.issues.list_project_issues(alice, project.id)
    assert [i.id for i in issues] == [second.id, first.id]


def test_list_user_issues(services, alice, bob, admin, project, make_issue):
    services.projects.add_member(alice, project.id, bob.id)
    mine = make_issue("for bob", assignee_id=bob.id)
    make_issue("unassigned")

    assert [i.id for i in services.issues.list_user_issues(bob, bob.id)] == [mine.id]
    assert [i.id for i in services.issues.list_user_issues(admin, bob.id)] == [mine.id]
    with pytest.raises(ForbiddenError):
        services.issues.list_user_issues(alice, bob.id)


def test_delete_issue_removes_comments(services, alice, project, make_issue):
    issue = make_issue()
    services.comments.create_comment(alice, issue.id, "first!")

    assert services.issues.delete_issue(alice, issue.id) is True
    assert services.issues.list_project_issues(alice, project.id) == []
    with pytest.raises(NotFoundError):
        services.comments.list_comments(alice, issue.id)


def test_delete_missing_issue_returns_false(services, alice):
    assert services.issues.delete_issue(alice, 12345) is False


def test_issue_mutations_are_audited(services, alice, statuses, make_issue):
    issue = make_issue("Audited")
    services.issues.update_status(alice, issue.id, statuses["done"].id)

    actions = [e.action for e in services.audit.list_entries(user_id=alice.id)]
    assert "ISSUE_CREATE" in actions
    assert actions[0] == "ISSUE_STATUS_CHANGE"


def test_sprint_status_untouched_by_issue_moves(services, alice, project, make_issue):
    sprint = services.sprints.create_sprint(alice, project.id, "Sprint")
    issue = make_issue()
    services.issues.assign_to_sprint(alice, issue.id, sprint.id)

    assert services.sprints.get_sprint(alice, sprint.id).status == SprintStatus.PLANNED
