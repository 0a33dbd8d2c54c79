"""
Tests for FinBoard

Test strategy:
1. Unit tests for individual components (models, money, ordering)
2. Integration tests for the board manager (with in-memory store doubles)
3. No real API calls in tests
"""

import re
from datetime import datetime, timedelta, timezone

import pytest

from finboard.models.board import (
    ALL_CAPABILITIES,
    BoardCapability,
    BoardList,
    BoardSnapshot,
    Card,
    CardUpdate,
    OperationOutcome,
    ensure_utc,
    new_identifier,
)
from finboard.models.events import (
    BoardEvent,
    BoardEventBuilder,
    BoardEventSeverity,
    BoardEventType,
)


WHEN = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


class TestBoardModels:
    """Tests for board entity models."""

    def test_board_list_strips_whitespace(self):
        """Test that whitespace is stripped from list titles."""
        board_list = BoardList(id="investment1", title="  Investment 1  ")
        assert board_list.title == "Investment 1"

    def test_board_list_rejects_blank_title(self):
        """Test that a whitespace-only title is rejected."""
        with pytest.raises(ValueError):
            BoardList(id="l1", title="   ")

    def test_card_creation(self):
        """Test Card model creation."""
        card = Card(id="c1", list_id="l1", amount_minor_units=10000, occurred_at=WHEN)
        assert card.amount_minor_units == 10000
        assert card.is_projection is False
        assert card.occurred_at == WHEN

    def test_card_naive_timestamp_is_utc(self):
        """Test that naive timestamps are taken as UTC."""
        card = Card(
            id="c1",
            list_id="l1",
            amount_minor_units=1,
            occurred_at=datetime(2025, 3, 1, 9, 30),
        )
        assert card.occurred_at == WHEN
        assert card.occurred_at.tzinfo == timezone.utc

    def test_card_timestamp_normalized_to_utc(self):
        """Test that offset timestamps are converted to UTC."""
        sao_paulo = timezone(timedelta(hours=-3))
        card = Card(
            id="c1",
            list_id="l1",
            amount_minor_units=1,
            occurred_at=datetime(2025, 3, 1, 6, 30, tzinfo=sao_paulo),
        )
        assert card.occurred_at == WHEN
        assert card.occurred_at.utcoffset() == timedelta(0)

    def test_card_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Card(id="c1", list_id="l1", amount_minor_units=-1, occurred_at=WHEN)

    def test_card_rejects_float_amount(self):
        """Test that amounts must be integers, never floats."""
        with pytest.raises(ValueError):
            Card(id="c1", list_id="l1", amount_minor_units=100.0, occurred_at=WHEN)

    def test_card_is_immutable(self):
        """Test that cards cannot be edited in place."""
        card = Card(id="c1", list_id="l1", amount_minor_units=1, occurred_at=WHEN)
        with pytest.raises(ValueError):
            card.amount_minor_units = 2

    def test_ensure_utc_keeps_aware_instant(self):
        """Test that ensure_utc does not move an aware instant."""
        assert ensure_utc(WHEN) == WHEN

    def test_new_identifier_format(self):
        """Test generated ids look like card-<epoch ms>-<4 base36 chars>."""
        identifier = new_identifier("card")
        assert re.fullmatch(r"card-\d{13,}-[0-9a-z]{4}", identifier)

    def test_new_identifiers_differ(self):
        """Test that consecutive ids are distinct."""
        assert len({new_identifier("list") for _ in range(50)}) > 1


class TestCardUpdate:
    """Tests for partial card updates."""

    def test_changes_only_contains_set_fields(self):
        """Test that unset fields are not sent to storage."""
        update = CardUpdate(amount_minor_units=500)
        assert update.changes() == {"amount_minor_units": 500}

    def test_false_projection_flag_is_a_change(self):
        """Test that promoting a projection is not mistaken for 'no change'."""
        update = CardUpdate(is_projection=False)
        assert update.changes() == {"is_projection": False}
        assert update.is_empty is False

    def test_empty_update(self):
        """Test an update with no fields."""
        assert CardUpdate().is_empty is True

    def test_rejects_zero_amount(self):
        """Test that an edit cannot set an amount of zero."""
        with pytest.raises(ValueError):
            CardUpdate(amount_minor_units=0)

    def test_apply_to(self):
        """Test applying an update leaves other fields alone."""
        card = Card(id="c1", list_id="l1", amount_minor_units=100, occurred_at=WHEN, is_projection=True)
        updated = CardUpdate(list_id="l2").apply_to(card)
        assert updated.list_id == "l2"
        assert updated.amount_minor_units == 100
        assert updated.is_projection is True
        assert card.list_id == "l1"


class TestBoardSnapshot:
    """Tests for the read-only board view."""

    def test_cards_for_list_most_recent_first(self):
        """Test per-list ordering by timestamp, descending."""
        snapshot = BoardSnapshot(
            lists=(BoardList(id="l1", title="A"),),
            board_order=("l1",),
            cards=(
                Card(id="old", list_id="l1", amount_minor_units=1, occurred_at=WHEN),
                Card(id="new", list_id="l1", amount_minor_units=1, occurred_at=WHEN + timedelta(days=1)),
                Card(id="other", list_id="l2", amount_minor_units=1, occurred_at=WHEN),
            ),
        )
        assert [c.id for c in snapshot.cards_for_list("l1")] == ["new", "old"]

    def test_cards_for_list_ties_keep_arrival_order(self):
        """Test that equal timestamps keep the order cards arrived in."""
        snapshot = BoardSnapshot(cards=(
            Card(id="first", list_id="l1", amount_minor_units=1, occurred_at=WHEN),
            Card(id="second", list_id="l1", amount_minor_units=1, occurred_at=WHEN),
        ))
        assert [c.id for c in snapshot.cards_for_list("l1")] == ["first", "second"]

    def test_find_missing(self):
        """Test lookups of unknown ids return None."""
        snapshot = BoardSnapshot()
        assert snapshot.find_list("nope") is None
        assert snapshot.find_card("nope") is None


class TestOperationOutcome:
    """Tests for OperationOutcome."""

    def test_degraded_when_warning(self):
        """Test that an outcome with a warning is degraded."""
        outcome = OperationOutcome(operation="add_card", warning="local only")
        assert outcome.degraded is True

    def test_not_degraded_by_default(self):
        """Test a plain outcome."""
        outcome = OperationOutcome(operation="add_card", persisted=True)
        assert outcome.degraded is False
        assert outcome.applied is True


class TestBoardEventModels:
    """Tests for board event models."""

    def test_board_event_creation(self):
        """Test BoardEvent model creation."""
        event = BoardEvent(
            event_type=BoardEventType.BOARD_CONNECTED,
            description="Board connected",
        )
        assert event.event_type == BoardEventType.BOARD_CONNECTED
        assert event.severity == BoardEventSeverity.INFO

    def test_board_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = BoardEventBuilder.operation_applied("add_card", "card", "c1", persisted=True)
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "operation_applied"
        assert log_dict["entity_id"] == "c1"
        assert log_dict["details"]["persisted"] is True

    def test_fallback_entered_is_a_warning(self):
        """Test that the switch to local mode is logged as a warning."""
        event = BoardEventBuilder.fallback_entered("create_card", "timeout")
        assert event.event_type == BoardEventType.FALLBACK_ENTERED
        assert event.severity == BoardEventSeverity.WARNING
        assert event.error_message == "timeout"
        assert event.details["trigger"] == "create_card"

    def test_input_rejected_names_error_type(self):
        """Test BoardEventBuilder.input_rejected."""
        event = BoardEventBuilder.input_rejected("transfer", ValueError("too much"))
        assert "ValueError" in event.description
        assert event.error_message == "too much"


class TestCapabilities:
    """Tests for the capability enum."""

    def test_all_capabilities(self):
        """Test that every operation kind has a capability."""
        expected = [
            "add_list", "remove_list", "reorder_lists", "add_card",
            "remove_card", "edit_card", "move_cards", "transfer", "installments",
        ]
        for capability in expected:
            assert BoardCapability(capability) in ALL_CAPABILITIES


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
