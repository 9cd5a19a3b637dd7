"""Tests for the follow state machine and graph reads."""

from __future__ import annotations

import pytest

from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError, SelfFollowError, ValidationError
from app.models import FollowStatus, Notification, NotificationType
from app.services import follow, relationships


def _counts(db_session, *users):
    for user in users:
        db_session.refresh(user)
    return [(user.followers_count, user.following_count) for user in users]


def test_follow_public_account_is_accepted_immediately(db_session, make_user):
    alice = make_user("alice")
    bob = make_user("bob")

    result = follow.toggle_follow(db_session, alice.id, bob.id)

    assert result.following is True
    assert result.status == FollowStatus.ACCEPTED
    assert relationships.get_edge(db_session, alice.id, bob.id).status == FollowStatus.ACCEPTED
    assert _counts(db_session, alice, bob) == [(0, 1), (1, 0)]
    assert result.notification is not None
    assert result.notification.type == NotificationType.FOLLOW
    assert result.notification.user_id == bob.id
    assert result.notification.message == "alice started following you."


def test_follow_private_account_creates_pending_request(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)

    result = follow.toggle_follow(db_session, alice.id, carol.id)

    assert result.status == FollowStatus.PENDING
    assert _counts(db_session, alice, carol) == [(0, 0), (0, 0)]
    assert result.notification.type == NotificationType.FOLLOW_REQUEST
    assert result.notification.message == "alice sent you a follow request."


def test_toggle_twice_restores_edge_and_counters(db_session, make_user):
    alice = make_user("alice")
    bob = make_user("bob")

    follow.toggle_follow(db_session, alice.id, bob.id)
    result = follow.toggle_follow(db_session, alice.id, bob.id)

    assert result.following is False
    assert result.notification is None
    assert relationships.get_edge(db_session, alice.id, bob.id) is None
    assert _counts(db_session, alice, bob) == [(0, 0), (0, 0)]


def test_cancelling_pending_request_leaves_counters_alone(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)

    follow.toggle_follow(db_session, alice.id, carol.id)
    follow.toggle_follow(db_session, alice.id, carol.id)

    assert relationships.get_edge(db_session, alice.id, carol.id) is None
    assert _counts(db_session, alice, carol) == [(0, 0), (0, 0)]


def test_toggle_removes_rejected_edge_without_counter_drift(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)
    follow.toggle_follow(db_session, alice.id, carol.id)
    follow.reject_request(db_session, carol.id, alice.id)

    result = follow.toggle_follow(db_session, alice.id, carol.id)

    assert result.following is False
    assert _counts(db_session, alice, carol) == [(0, 0), (0, 0)]


def test_self_follow_is_rejected(db_session, make_user):
    alice = make_user("alice")

    with pytest.raises(SelfFollowError) as exc:
        follow.toggle_follow(db_session, alice.id, alice.id)

    assert isinstance(exc.value, ValidationError)
    assert exc.value.status_code == 400


def test_follow_unknown_user_is_not_found(db_session, make_user):
    alice = make_user("alice")

    with pytest.raises(NotFoundError):
        follow.toggle_follow(db_session, alice.id, 999)
    with pytest.raises(NotFoundError):
        follow.toggle_follow(db_session, 999, alice.id)


def test_accept_request_bumps_counters_and_notifies(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)
    follow.toggle_follow(db_session, alice.id, carol.id)

    notification = follow.accept_request(db_session, carol.id, alice.id)

    edge = relationships.get_edge(db_session, alice.id, carol.id)
    assert edge.status == FollowStatus.ACCEPTED
    assert edge.responded_at is not None
    assert _counts(db_session, alice, carol) == [(0, 1), (1, 0)]
    assert notification.user_id == alice.id
    assert notification.type == NotificationType.REQUEST_ACCEPTED
    assert notification.message == "carol accepted your follow request."


def test_second_accept_fails_with_invalid_state(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)
    follow.toggle_follow(db_session, alice.id, carol.id)
    follow.accept_request(db_session, carol.id, alice.id)

    with pytest.raises(InvalidStateError) as exc:
        follow.accept_request(db_session, carol.id, alice.id)

    assert exc.value.status_code == 409
    assert _counts(db_session, alice, carol) == [(0, 1), (1, 0)]


def test_reject_request_keeps_counters(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)
    follow.toggle_follow(db_session, alice.id, carol.id)

    notification = follow.reject_request(db_session, carol.id, alice.id)

    assert relationships.get_edge(db_session, alice.id, carol.id).status == FollowStatus.REJECTED
    assert _counts(db_session, alice, carol) == [(0, 0), (0, 0)]
    assert notification.type == NotificationType.REQUEST_REJECTED

    with pytest.raises(InvalidStateError):
        follow.accept_request(db_session, carol.id, alice.id)


def test_accept_without_request_is_not_found(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)

    with pytest.raises(NotFoundError):
        follow.accept_request(db_session, carol.id, alice.id)


def test_failed_transition_rolls_back(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)
    follow.toggle_follow(db_session, alice.id, carol.id)
    follow.accept_request(db_session, carol.id, alice.id)
    before = db_session.query(Notification).count()

    with pytest.raises(InvalidStateError):
        follow.reject_request(db_session, carol.id, alice.id)

    assert db_session.query(Notification).count() == before


def test_list_requests_projects_pending_followers(db_session, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    carol = make_user("carol", is_private=True)
    follow.toggle_follow(db_session, alice.id, carol.id)
    follow.toggle_follow(db_session, bob.id, carol.id)
    follow.accept_request(db_session, carol.id, bob.id)

    requests = follow.list_requests(db_session, carol.id)

    assert [user.username for user, _ in requests] == ["alice"]
    assert follow.list_requests(db_session, alice.id) == []
    with pytest.raises(NotFoundError):
        follow.list_requests(db_session, 999)


def test_mutual_followers(db_session, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    dave = make_user("dave")
    erin = make_user("erin")
    target = make_user("target")
    # alice follows bob and dave; bob and erin follow target.
    follow.toggle_follow(db_session, alice.id, bob.id)
    follow.toggle_follow(db_session, alice.id, dave.id)
    follow.toggle_follow(db_session, bob.id, target.id)
    follow.toggle_follow(db_session, erin.id, target.id)

    mutual = follow.get_mutual_followers(db_session, alice.id, target.id)

    assert [user.username for user in mutual] == ["bob"]


def test_mutual_followers_of_private_target_requires_visibility(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)

    with pytest.raises(ForbiddenError):
        follow.get_mutual_followers(db_session, alice.id, carol.id)

    follow.toggle_follow(db_session, alice.id, carol.id)
    follow.accept_request(db_session, carol.id, alice.id)
    assert follow.get_mutual_followers(db_session, alice.id, carol.id) == []


def test_suggestions_rank_friends_of_friends_first(db_session, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    dave = make_user("dave")
    frank = make_user("frank")
    gina = make_user("gina")
    newest = make_user("newest")
    follow.toggle_follow(db_session, alice.id, bob.id)
    follow.toggle_follow(db_session, alice.id, dave.id)
    follow.toggle_follow(db_session, bob.id, frank.id)
    follow.toggle_follow(db_session, dave.id, frank.id)
    follow.toggle_follow(db_session, bob.id, gina.id)

    suggestions = follow.suggested_users(db_session, alice.id, limit=3)

    assert [user.username for user in suggestions] == ["frank", "gina", "newest"]
    assert alice.id not in {user.id for user in suggestions}


def test_suggestions_skip_pending_targets_and_respect_limit(db_session, make_user):
    alice = make_user("alice")
    carol = make_user("carol", is_private=True)
    for _ in range(4):
        make_user()
    follow.toggle_follow(db_session, alice.id, carol.id)

    suggestions = follow.suggested_users(db_session, alice.id, limit=2)

    assert len(suggestions) == 2
    assert carol.id not in {user.id for user in suggestions}
