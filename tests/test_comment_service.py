"""Tests for comments"""

import pytest

from scrumboard.errors import ForbiddenError, NotFoundError, ValidationError


def test_comments_oldest_first(services, alice, make_issue):
    issue = make_issue()
    first = services.comments.create_comment(alice, issue.id, "first")
    second = services.comments.create_comment(alice, issue.id, "second")

    comments = services.comments.list_comments(alice, issue.id)

    assert [c.id for c in comments] == [first.id, second.id]
    assert comments[0].author_id == alice.id
    assert comments[0].author_name == "Alice Developer"


def test_comment_requires_content(services, alice, make_issue):
    issue = make_issue()
    with pytest.raises(ValidationError):
        services.comments.create_comment(alice, issue.id, "   ")


def test_comment_on_missing_issue(services, alice):
    with pytest.raises(NotFoundError):
        services.comments.create_comment(alice, 404, "hello?")


def test_non_member_cannot_comment(services, bob, make_issue):
    issue = make_issue()
    with pytest.raises(ForbiddenError):
        services.comments.create_comment(bob, issue.id, "let me in")


def test_only_author_or_admin_edits(services, admin, alice, bob, project, make_issue):
    services.projects.add_member(alice, project.id, bob.id)
    issue = make_issue()
    comment = services.comments.create_comment(alice, issue.id, "original")

    with pytest.raises(ForbiddenError):
        services.comments.update_comment(bob, comment.id, "edited by bob")
    with pytest.raises(ForbiddenError):
        services.comments.delete_comment(bob, comment.id)

    assert services.comments.update_comment(alice, comment.id, "edited").content == "edited"
    assert services.comments.update_comment(admin, comment.id, "moderated").content == "moderated"
    assert services.comments.delete_comment(admin, comment.id) is True
    assert services.comments.list_comments(alice, issue.id) == []


def test_update_missing_comment(services, alice):
    with pytest.raises(NotFoundError):
        services.comments.update_comment(alice, 77, "nothing here")
