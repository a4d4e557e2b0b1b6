"""Unit tests for the comment moderation state machine."""

from datetime import UTC, datetime

import pytest

from inkwell.core.errors import AuthorizationError, ConflictError, ValidationError
from inkwell.models import Comment, CommentStatus, UserRole
from inkwell.services.moderation import normalize_reason, plan_transition, validate_content
from inkwell.services.permissions import Actor, CommentTransition, ensure_can_perform

AUTHOR = Actor(id=1, role=UserRole.USER)
READER = Actor(id=2, role=UserRole.USER)
MODERATOR = Actor(id=3, role=UserRole.MODERATOR)
ADMIN = Actor(id=4, role=UserRole.ADMIN)
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
EARLIER = datetime(2024, 4, 1, 8, 30, tzinfo=UTC)


def _comment(status: CommentStatus = CommentStatus.PENDING, **fields) -> Comment:
    values = {
        "id": 10,
        "content": "original",
        "post_id": 5,
        "author_id": AUTHOR.id,
        "status": status,
        "moderated_by": None,
        "moderated_at": None,
        "moderation_notes": None,
        "flagged_by": None,
        "flagged_at": None,
    }
    values.update(fields)
    return Comment(**values)


def _fully_audited(status: CommentStatus) -> Comment:
    return _comment(
        status,
        moderated_by=MODERATOR.id,
        moderated_at=EARLIER,
        moderation_notes="looked fine",
        flagged_by=READER.id,
        flagged_at=EARLIER,
    )


@pytest.mark.parametrize("status", list(CommentStatus))
def test_edit_resets_to_pending_and_clears_every_audit_field(status):
    comment = _fully_audited(status)

    changes = plan_transition(
        comment, CommentTransition.EDIT, AUTHOR, content="rewritten", now=NOW
    )

    assert changes == {
        "content": "rewritten",
        "status": CommentStatus.PENDING,
        "moderated_by": None,
        "moderated_at": None,
        "moderation_notes": None,
        "flagged_by": None,
        "flagged_at": None,
    }
    # Planning never mutates the entity.
    assert comment.status == status
    assert comment.content == "original"


def test_edit_by_someone_else_is_forbidden():
    with pytest.raises(AuthorizationError):
        plan_transition(_comment(), CommentTransition.EDIT, MODERATOR, content="x")


@pytest.mark.parametrize("content", ["", "   ", "x" * 5001])
def test_edit_rejects_out_of_range_content(content):
    with pytest.raises(ValidationError):
        plan_transition(_comment(), CommentTransition.EDIT, AUTHOR, content=content)


@pytest.mark.parametrize(
    ("transition", "expected"),
    [
        (CommentTransition.APPROVE, CommentStatus.APPROVED),
        (CommentTransition.REJECT, CommentStatus.REJECTED),
    ],
)
@pytest.mark.parametrize("actor", [MODERATOR, ADMIN])
def test_moderation_stamps_audit_and_clears_flag(transition, expected, actor):
    comment = _fully_audited(CommentStatus.FLAGGED)

    changes = plan_transition(comment, transition, actor, reason="  ok  ", now=NOW)

    assert changes["status"] == expected
    assert changes["moderated_by"] == actor.id
    assert changes["moderated_at"] == NOW
    assert changes["moderation_notes"] == "ok"
    assert changes["flagged_by"] is None
    assert changes["flagged_at"] is None


@pytest.mark.parametrize("reason", [None, "", "    "])
def test_moderation_without_reason_keeps_previous_notes(reason):
    comment = _fully_audited(CommentStatus.PENDING)

    changes = plan_transition(comment, CommentTransition.APPROVE, MODERATOR, reason=reason)

    assert changes["moderation_notes"] == "looked fine"


@pytest.mark.parametrize("transition", [CommentTransition.APPROVE, CommentTransition.REJECT])
def test_moderation_requires_moderator_role(transition):
    with pytest.raises(AuthorizationError):
        plan_transition(_comment(), transition, READER)


def test_reason_over_limit_is_rejected():
    with pytest.raises(ValidationError):
        plan_transition(_comment(), CommentTransition.REJECT, MODERATOR, reason="r" * 1001)


def test_flag_marks_comment_and_appends_reason():
    comment = _comment(CommentStatus.APPROVED, moderation_notes="ok")

    changes = plan_transition(comment, CommentTransition.FLAG, READER, reason="spam", now=NOW)

    assert changes == {
        "status": CommentStatus.FLAGGED,
        "flagged_by": READER.id,
        "flagged_at": NOW,
        "moderation_notes": "ok\nFlag reason: spam",
    }


def test_flag_without_previous_notes_starts_a_new_note():
    changes = plan_transition(_comment(), CommentTransition.FLAG, READER, reason="spam")

    assert changes["moderation_notes"] == "Flag reason: spam"


def test_flag_without_reason_leaves_notes_alone():
    comment = _comment(CommentStatus.APPROVED, moderation_notes="ok")

    changes = plan_transition(comment, CommentTransition.FLAG, READER)

    assert changes["moderation_notes"] == "ok"


def test_flagging_a_rejected_comment_keeps_it_rejected():
    comment = _comment(CommentStatus.REJECTED)

    changes = plan_transition(comment, CommentTransition.FLAG, READER, now=NOW)

    assert changes["status"] == CommentStatus.REJECTED
    assert changes["flagged_by"] == READER.id
    assert changes["flagged_at"] == NOW


def test_author_cannot_flag_own_comment():
    with pytest.raises(ValidationError) as exc_info:
        plan_transition(_comment(), CommentTransition.FLAG, AUTHOR)

    assert exc_info.value.message == "You cannot flag your own comment"


def test_repeat_flag_by_same_user_while_flagged_conflicts():
    comment = _comment(CommentStatus.FLAGGED, flagged_by=READER.id, flagged_at=EARLIER)

    with pytest.raises(ConflictError):
        plan_transition(comment, CommentTransition.FLAG, READER)


def test_repeat_flag_is_allowed_once_status_changed():
    # Flag fields survive a flag on a rejected comment, so the same user may flag again.
    comment = _comment(CommentStatus.REJECTED, flagged_by=READER.id, flagged_at=EARLIER)

    changes = plan_transition(comment, CommentTransition.FLAG, READER, now=NOW)

    assert changes["flagged_at"] == NOW


def test_another_user_may_flag_an_already_flagged_comment():
    comment = _comment(CommentStatus.FLAGGED, flagged_by=READER.id)

    changes = plan_transition(comment, CommentTransition.FLAG, MODERATOR)

    assert changes["flagged_by"] == MODERATOR.id


@pytest.mark.parametrize("actor", [AUTHOR, MODERATOR, ADMIN])
def test_delete_allowed_for_author_and_moderators(actor):
    assert plan_transition(_comment(), CommentTransition.DELETE, actor) == {}


def test_delete_forbidden_for_other_users():
    with pytest.raises(AuthorizationError):
        ensure_can_perform(READER, CommentTransition.DELETE, _comment())


def test_normalize_reason():
    assert normalize_reason(None) is None
    assert normalize_reason("   ") is None
    assert normalize_reason(" spam ") == "spam"
    assert normalize_reason(" " + "a" * 1000 + " ") == "a" * 1000


def test_validate_content_accepts_limits():
    assert validate_content("a") == "a"
    assert validate_content("a" * 5000) == "a" * 5000
