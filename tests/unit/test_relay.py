"""
Tests for the connection registry and the room relay.

Participants are driven directly; outbound events are read from their
outboxes with `drain`.
"""

import pytest

from relaychat.core.relay import ConnectionRegistry, Participant, Relay
from relaychat.schemas.messages import DeliveryStatus, FileMessage, TextMessage


def text(sender: str, content: str, room: str = "general") -> TextMessage:
    return TextMessage(room=room, sender_id=sender, role="customer", content=content)


@pytest.fixture
def alice():
    return Participant("conn-a", "alice")


@pytest.fixture
def bob():
    return Participant("conn-b", "bob")


@pytest.fixture
def carol():
    return Participant("conn-c", "carol")


class TestConnectionRegistry:
    def test_join_creates_room(self, alice):
        registry = ConnectionRegistry()
        assert registry.join("general", alice) is True
        assert registry.rooms() == ["general"]
        assert registry.members("general") == [alice]

    def test_join_is_idempotent(self, alice):
        registry = ConnectionRegistry()
        registry.join("general", alice)
        assert registry.join("general", alice) is False
        assert registry.members("general") == [alice]

    def test_unregister_removes_every_membership(self, alice, bob):
        registry = ConnectionRegistry()
        registry.join("general", alice)
        registry.join("support", alice)
        registry.join("general", bob)

        rooms = registry.unregister(alice)

        assert rooms == {"general", "support"}
        assert registry.members("general") == [bob]
        assert registry.members("support") == []
        assert not registry.is_connected(alice)
        assert registry.rooms_of(alice) == set()

    def test_members_returns_snapshot(self, alice, bob):
        registry = ConnectionRegistry()
        registry.join("general", alice)
        snapshot = registry.members("general")
        registry.join("general", bob)
        assert snapshot == [alice]

    def test_leave_unknown_room(self, alice):
        registry = ConnectionRegistry()
        assert registry.leave("nowhere", alice) is False


class TestPublish:
    def test_delivers_to_every_member_including_sender(self, relay, alice, bob, drain):
        relay.join("general", alice)
        relay.join("general", bob)

        count = relay.publish("general", text("alice", "hello"))

        assert count == 2
        for participant in (alice, bob):
            events = drain(participant)
            assert len(events) == 1
            assert events[0]["action"] == "receive_message"
            assert events[0]["message"]["content"] == "hello"
            assert events[0]["message"]["senderId"] == "alice"

    def test_relayed_copy_is_delivered(self, relay, alice, drain):
        relay.join("general", alice)
        message = text("alice", "hi")

        relay.publish("general", message)

        assert drain(alice)[0]["message"]["status"] == "delivered"
        assert message.status == DeliveryStatus.SENT

    def test_read_status_never_regresses(self, relay, alice, drain):
        relay.join("general", alice)
        message = text("alice", "seen").model_copy(update={"status": DeliveryStatus.READ})

        relay.publish("general", message)

        assert drain(alice)[0]["message"]["status"] == "read"

    def test_empty_room_is_silent_noop(self, relay):
        assert relay.publish("empty", text("alice", "anyone?")) == 0

    def test_double_join_delivers_one_copy(self, relay, alice, drain):
        relay.join("general", alice)
        relay.join("general", alice)

        relay.publish("general", text("alice", "once"))

        assert len(drain(alice)) == 1

    def test_per_sender_order_is_preserved(self, relay, alice, bob, carol, drain):
        for participant in (alice, bob, carol):
            relay.join("general", participant)

        for i in range(10):
            relay.publish("general", text("alice", f"a{i}"))
            relay.publish("general", text("bob", f"b{i}"))

        events = drain(carol)
        from_alice = [e["message"]["content"] for e in events if e["message"]["senderId"] == "alice"]
        from_bob = [e["message"]["content"] for e in events if e["message"]["senderId"] == "bob"]
        assert from_alice == [f"a{i}" for i in range(10)]
        assert from_bob == [f"b{i}" for i in range(10)]

    def test_file_message_fields_survive_relay(self, relay, alice, drain):
        relay.join("general", alice)
        message = FileMessage(
            room="general",
            sender_id="alice",
            file_name="report.pdf",
            local_path="uploads/1-2-report.pdf",
            mime_type="application/pdf",
            converted=True,
            drive_link="https://drive.google.com/file/d/x/view",
        )

        relay.publish("general", message)

        relayed = drain(alice)[0]["message"]
        assert relayed["type"] == "file"
        assert relayed["fileName"] == "report.pdf"
        assert relayed["driveLink"] == "https://drive.google.com/file/d/x/view"
        assert relayed["converted"] is True

    def test_other_rooms_do_not_receive(self, relay, alice, bob, drain):
        relay.join("general", alice)
        relay.join("support", bob)

        relay.publish("general", text("alice", "general only"))

        assert drain(bob) == []


class TestTyping:
    def test_typing_skips_originator(self, relay, alice, bob, carol, drain):
        for participant in (alice, bob, carol):
            relay.join("general", participant)

        count = relay.notify_typing("general", alice)

        assert count == 2
        assert drain(alice) == []
        for participant in (bob, carol):
            events = drain(participant)
            assert events == [{"action": "user_typing", "room": "general", "userId": "alice"}]

    def test_explicit_user_id_wins(self, relay, alice, bob, drain):
        relay.join("general", alice)
        relay.join("general", bob)

        relay.notify_typing("general", alice, user_id="agent-1")

        assert drain(bob)[0]["userId"] == "agent-1"


class TestDisconnect:
    def test_disconnected_participant_stops_receiving(self, relay, alice, bob, drain):
        relay.join("general", alice)
        relay.join("general", bob)

        relay.disconnect(bob)
        count = relay.publish("general", text("alice", "still there?"))

        assert count == 1
        assert relay.registry.members("general") == [alice]
        assert drain(bob) == []

    def test_closed_outbox_refuses_delivery(self, alice):
        alice.close()
        assert alice.deliver({"action": "receive_message"}) is False
        assert alice.outbox.get_nowait() is None

    def test_leave_one_room_keeps_others(self, relay, alice, drain):
        relay.join("general", alice)
        relay.join("support", alice)

        assert relay.leave("general", alice) is True
        relay.publish("general", text("bob", "gone"))
        relay.publish("support", text("bob", "here", room="support"))

        assert [e["message"]["content"] for e in drain(alice)] == ["here"]
        assert relay.registry.rooms_of(alice) == {"support"}
