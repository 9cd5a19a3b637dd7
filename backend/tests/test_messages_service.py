"""Tests for the encrypted message store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import (
    ExpiredWindowError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.core.encryption import MessageCipher
from app.models import Message
from app.services import messages

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def pair(make_user):
    return make_user("alice"), make_user("bob")


def _send(db_session, cipher, sender, receiver, text="hi", **kwargs):
    return messages.create_message(
        db_session, cipher, sender_id=sender.id, receiver_id=receiver.id, text=text, **kwargs
    )


def test_room_id_is_order_independent():
    assert messages.room_id_for(1, 2) == "1_2"
    assert messages.room_id_for(2, 1) == "1_2"
    assert messages.room_id_for(10, 9) == "9_10"


@pytest.mark.parametrize("room_id", ["", "1", "1_", "a_b", "2_1", "3_3", "1_2_3", "-1_2"])
def test_malformed_room_ids_are_rejected(room_id):
    with pytest.raises(ValidationError):
        messages.parse_room_id(room_id)


def test_message_is_stored_encrypted(db_session, cipher, pair):
    alice, bob = pair

    message = _send(db_session, cipher, alice, bob, "top secret")

    stored = db_session.get(Message, message.id)
    assert stored.room_id == f"{alice.id}_{bob.id}"
    assert "top secret" not in stored.content
    assert cipher.decrypt(stored.content, stored.iv) == "top secret"


@pytest.mark.parametrize("text", ["", None, 42])
def test_empty_or_non_string_body_is_rejected(db_session, cipher, pair, text):
    alice, bob = pair

    with pytest.raises(ValidationError):
        _send(db_session, cipher, alice, bob, text)

    assert db_session.query(Message).count() == 0


@pytest.mark.parametrize("text", [" ", "\n\t"])
def test_whitespace_body_is_a_valid_message(db_session, cipher, pair, text):
    alice, bob = pair

    message = _send(db_session, cipher, alice, bob, text)

    stored = db_session.get(Message, message.id)
    assert cipher.decrypt(stored.content, stored.iv) == text
    [read] = messages.get_messages_by_room(db_session, cipher, user_id=bob.id, room_id=stored.room_id)
    assert read.message == text


def test_self_message_and_unknown_receiver(db_session, cipher, pair):
    alice, _ = pair

    with pytest.raises(ValidationError):
        messages.create_message(db_session, cipher, sender_id=alice.id, receiver_id=alice.id, text="x")
    with pytest.raises(NotFoundError):
        messages.create_message(db_session, cipher, sender_id=alice.id, receiver_id=999, text="x")


def test_room_history_is_ordered_and_decrypted(db_session, cipher, pair):
    alice, bob = pair
    _send(db_session, cipher, alice, bob, "first", now=BASE_TIME)
    _send(db_session, cipher, bob, alice, "second", now=BASE_TIME + timedelta(seconds=1))
    _send(db_session, cipher, alice, bob, "third", now=BASE_TIME + timedelta(seconds=1))

    room_id = messages.room_id_for(alice.id, bob.id)
    history = messages.get_messages_by_room(db_session, cipher, user_id=bob.id, room_id=room_id)

    assert [item.message for item in history] == ["first", "second", "third"]
    assert history[1].sender_id == bob.id


def test_history_requires_participant(db_session, cipher, pair, make_user):
    alice, bob = pair
    mallory = make_user("mallory")
    room_id = messages.room_id_for(alice.id, bob.id)

    with pytest.raises(ForbiddenError):
        messages.get_messages_by_room(db_session, cipher, user_id=mallory.id, room_id=room_id)
    with pytest.raises(NotFoundError):
        messages.get_messages_by_room(db_session, cipher, user_id=999, room_id=room_id)


def test_empty_room_returns_empty_list_for_participant(db_session, cipher, pair):
    alice, bob = pair
    room_id = messages.room_id_for(alice.id, bob.id)

    assert messages.get_messages_by_room(db_session, cipher, user_id=alice.id, room_id=room_id) == []


def test_delete_for_self_only_hides_for_requester(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob, "hide me")
    room_id = message.room_id

    messages.delete_for_self(db_session, message_id=message.id, user_id=bob.id)
    messages.delete_for_self(db_session, message_id=message.id, user_id=bob.id)

    assert messages.get_messages_by_room(db_session, cipher, user_id=bob.id, room_id=room_id) == []
    alice_view = messages.get_messages_by_room(db_session, cipher, user_id=alice.id, room_id=room_id)
    assert [item.message for item in alice_view] == ["hide me"]
    assert db_session.get(Message, message.id).deleted_for == {bob.id}


def test_delete_for_self_requires_participant(db_session, cipher, pair, make_user):
    alice, bob = pair
    mallory = make_user("mallory")
    message = _send(db_session, cipher, alice, bob)

    with pytest.raises(ForbiddenError):
        messages.delete_for_self(db_session, message_id=message.id, user_id=mallory.id)


def test_delete_for_everyone_inside_window(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob, "oops", now=BASE_TIME)

    deleted = messages.delete_for_everyone(
        db_session,
        message_id=message.id,
        sender_id=alice.id,
        now=BASE_TIME + timedelta(hours=23, minutes=59, seconds=59),
    )

    assert deleted.is_deleted_for_everyone is True
    assert deleted.deleted_at is not None
    history = messages.get_messages_by_room(db_session, cipher, user_id=bob.id, room_id=message.room_id)
    assert history[0].message is None
    assert history[0].is_deleted_for_everyone is True


def test_delete_for_everyone_after_window_is_rejected(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob, "too late", now=BASE_TIME)

    with pytest.raises(ExpiredWindowError):
        messages.delete_for_everyone(
            db_session,
            message_id=message.id,
            sender_id=alice.id,
            now=BASE_TIME + timedelta(hours=24, seconds=1),
        )

    assert db_session.get(Message, message.id).is_deleted_for_everyone is False


def test_delete_for_everyone_at_exactly_24_hours_is_expired(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob, now=BASE_TIME)

    with pytest.raises(ExpiredWindowError):
        messages.delete_for_everyone(
            db_session, message_id=message.id, sender_id=alice.id, now=BASE_TIME + timedelta(hours=24)
        )


def test_delete_for_everyone_requires_sender(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob)

    with pytest.raises(ForbiddenError):
        messages.delete_for_everyone(db_session, message_id=message.id, sender_id=bob.id)
    with pytest.raises(NotFoundError):
        messages.delete_for_everyone(db_session, message_id=999, sender_id=alice.id)


def test_edit_reencrypts_and_marks_edited(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob, "draft")
    old_iv = message.iv

    edited = messages.edit_message(
        db_session, cipher, message_id=message.id, sender_id=alice.id, new_text="final"
    )

    assert edited.is_edited is True
    assert edited.edited_at is not None
    assert edited.iv != old_iv
    assert cipher.decrypt(edited.content, edited.iv) == "final"


def test_edited_event_reports_the_stored_body(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob, "draft")
    edited = messages.edit_message(
        db_session, cipher, message_id=message.id, sender_id=alice.id, new_text="final"
    )

    event = messages.edited_event(cipher, edited)
    assert event["type"] == "message_edited"
    assert event["newMessage"] == "final"
    assert event["isEdited"] is True
    assert event["editedAt"]

    # A body that no longer decrypts is reported as such, not echoed back.
    assert messages.edited_event(MessageCipher(bytes(32)), edited)["newMessage"] is None


def test_edit_rules(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob, "draft")

    with pytest.raises(ForbiddenError):
        messages.edit_message(db_session, cipher, message_id=message.id, sender_id=bob.id, new_text="x")
    with pytest.raises(NotFoundError):
        messages.edit_message(db_session, cipher, message_id=999, sender_id=alice.id, new_text="x")

    messages.delete_for_everyone(db_session, message_id=message.id, sender_id=alice.id)
    with pytest.raises(InvalidStateError):
        messages.edit_message(db_session, cipher, message_id=message.id, sender_id=alice.id, new_text="x")


def test_reply_and_forward_previews(db_session, cipher, pair, make_user):
    alice, bob = pair
    carol = make_user("carol")
    original = _send(db_session, cipher, bob, alice, "question?", now=BASE_TIME)
    reply = _send(
        db_session, cipher, alice, bob, "answer", reply_to_id=original.id, now=BASE_TIME + timedelta(seconds=1)
    )
    forwarded = _send(db_session, cipher, alice, carol, "fyi", forward_from_id=original.id)

    serialized = messages.serialize_message(cipher, db_session.get(Message, reply.id))
    assert serialized.reply_to.message_id == original.id
    assert serialized.reply_to.message == "question?"

    forwarded_view = messages.serialize_message(cipher, db_session.get(Message, forwarded.id))
    assert forwarded_view.forward_from.message == "question?"
    assert forwarded_view.room_id == messages.room_id_for(alice.id, carol.id)


def test_reply_must_stay_in_room_and_forward_must_be_visible(db_session, cipher, pair, make_user):
    alice, bob = pair
    carol = make_user("carol")
    foreign = _send(db_session, cipher, bob, carol, "private")

    with pytest.raises(ValidationError):
        _send(db_session, cipher, alice, bob, "re", reply_to_id=foreign.id)
    with pytest.raises(ForbiddenError):
        _send(db_session, cipher, alice, bob, "fwd", forward_from_id=foreign.id)
    with pytest.raises(NotFoundError):
        _send(db_session, cipher, alice, bob, "re", reply_to_id=999)


def test_mark_read_only_by_receiver(db_session, cipher, pair):
    alice, bob = pair
    message = _send(db_session, cipher, alice, bob)

    with pytest.raises(ForbiddenError):
        messages.mark_read(db_session, message_id=message.id, reader_id=alice.id)

    read = messages.mark_read(db_session, message_id=message.id, reader_id=bob.id)
    assert read.is_read is True
    assert read.read_at is not None
