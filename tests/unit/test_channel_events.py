"""
Tests for wire event parsing.

WHAT: Test socket event and bot response parsing
WHY: The server mixes dedicated events, bot replies and error events
HOW: Feed representative payloads and check the resulting ChannelEvent
"""

import pytest

from negotiation_client.channel.events import (
    coerce_price,
    parse_bot_response,
    parse_wire_event,
)


@pytest.mark.unit
class TestCoercePrice:
    """Test price coercion from wire values."""
    
    @pytest.mark.parametrize("value,expected", [
        (45000, 45000.0),
        (45000.5, 45000.5),
        ("45000", 45000.0),
    ])
    def test_valid_prices(self, value, expected):
        assert coerce_price(value) == expected
    
    @pytest.mark.parametrize("value", [None, True, False, 0, -10, "abc", "", float("nan"), float("inf"), [], {}])
    def test_unusable_prices(self, value):
        assert coerce_price(value) is None


@pytest.mark.unit
class TestDedicatedEvents:
    """Test the negotiation-* events."""
    
    def test_message_event(self):
        event = parse_wire_event("negotiation-message", {"message": "45000 ?", "proposedPrice": 45000})
        
        assert event.kind == "message"
        assert event.message == "45000 ?"
        assert event.proposed_price == 45000
        assert event.final_price is None
    
    def test_message_without_price(self):
        event = parse_wire_event("negotiation-message", {"message": "Bonjour"})
        
        assert event.kind == "message"
        assert event.proposed_price is None
    
    def test_accepted_event(self):
        event = parse_wire_event(
            "negotiation-accepted",
            {"finalPrice": 45000, "message": "Ok", "negotiationId": "s1"},
        )
        
        assert event.kind == "accepted"
        assert event.final_price == 45000
        assert event.negotiation_id == "s1"
    
    def test_rejected_event(self):
        event = parse_wire_event("negotiation-rejected", {"message": "Trop bas"})
        
        assert event.kind == "rejected"
        assert event.message == "Trop bas"
        assert event.proposed_price is None
    
    def test_rejected_event_without_payload(self):
        event = parse_wire_event("negotiation-rejected", None)
        
        assert event.kind == "rejected"
        assert event.message == ""
    
    @pytest.mark.parametrize("name", ["bot-error", "socket-error"])
    def test_error_events(self, name):
        event = parse_wire_event(name, {"message": "Authentification requise"})
        
        assert event.kind == "error"
        assert event.message == "Authentification requise"
    
    def test_unknown_event_ignored(self):
        assert parse_wire_event("typing", {"message": "..."}) is None


@pytest.mark.unit
class TestBotResponses:
    """Test the automated responder vocabulary."""
    
    @pytest.mark.parametrize("status,kind", [
        ("accepted", "accepted"),
        ("acceptance", "accepted"),
        ("rejected", "rejected"),
        ("rejection", "rejected"),
        ("countered", "message"),
        ("negotiating", "message"),
        ("counter_offer", "message"),
        ("final_offer", "message"),
        ("error", "error"),
    ])
    def test_status_mapping(self, status, kind):
        event = parse_bot_response({"status": status, "message": "x", "proposedPrice": 45000})
        
        assert event.kind == kind
    
    def test_counter_offer_price_fields(self):
        """Test counterPrice is used when proposedPrice is absent."""
        event = parse_bot_response({"type": "counter_offer", "status": "negotiating", "counterPrice": 46000})
        
        assert event.kind == "message"
        assert event.proposed_price == 46000
    
    def test_final_offer_uses_final_price_as_proposal(self):
        """Test a bot's last offer is a proposal, not an acceptance."""
        event = parse_bot_response({"type": "final_offer", "status": "final_offer", "finalPrice": 47000})
        
        assert event.kind == "message"
        assert event.proposed_price == 47000
        assert event.final_price is None
    
    def test_acceptance_payload(self):
        event = parse_bot_response({
            "type": "acceptance",
            "status": "accepted",
            "message": "Parfait !",
            "finalPrice": 44000,
            "negotiationId": "s1",
        })
        
        assert event.kind == "accepted"
        assert event.final_price == 44000
        assert event.proposed_price is None
        assert event.negotiation_id == "s1"
    
    def test_bot_response_socket_event(self):
        event = parse_wire_event("bot-response", {"status": "rejected", "message": "Non"})
        
        assert event.kind == "rejected"
    
    def test_unknown_status(self):
        assert parse_bot_response({"status": "thinking"}) is None
