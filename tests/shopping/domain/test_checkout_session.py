"""Tests for the CheckoutSession state machine."""

import pytest
from protean.exceptions import ValidationError

from shopping.checkout.events import CheckoutCompleted, CheckoutPaymentDeclined
from shopping.checkout.session import FIRST_STEP, LAST_STEP, CheckoutSession, CheckoutStep
from shopping.shared.address import PostalAddress


class TestStepNavigation:
    def test_starts_on_first_step(self):
        assert CheckoutSession().current_step == FIRST_STEP == CheckoutStep.SHIPPING_ADDRESS.value

    def test_next_step_stops_at_last(self):
        session = CheckoutSession()
        for _ in range(6):
            session.next_step()
        assert session.current_step == LAST_STEP

    def test_previous_step_stops_at_first(self):
        session = CheckoutSession()
        session.previous_step()
        assert session.current_step == FIRST_STEP

    def test_go_to_step_is_not_gated(self):
        session = CheckoutSession()
        session.go_to_step(3)
        assert session.current_step == 3
        assert not session.can_proceed()

    def test_go_to_step_is_clamped(self):
        session = CheckoutSession()
        session.go_to_step(9)
        assert session.current_step == LAST_STEP
        session.go_to_step(-1)
        assert session.current_step == FIRST_STEP


class TestStepCompletion:
    def test_each_step_has_its_own_predicate(self, home_address, card):
        session = CheckoutSession()
        assert not any(session.is_step_complete(step.value) for step in CheckoutStep)

        session.update_shipping_address(home_address)
        assert session.is_step_complete(1)
        assert session.can_proceed()

        session.select_shipping_method("express")
        assert session.is_step_complete(2)

        session.select_payment_method(card)
        assert session.is_step_complete(3)
        assert not session.is_step_complete(4)

        session.record_order("ord-1", status="pending", total=20.0)
        assert session.is_step_complete(4)

    def test_unknown_step_is_never_complete(self):
        assert not CheckoutSession().is_step_complete(7)


class TestAddressMirroring:
    def test_shipping_is_mirrored_into_billing(self, home_address):
        session = CheckoutSession()
        session.update_shipping_address(home_address)

        assert session.shipping_address == PostalAddress(**home_address)
        assert session.billing_address == session.shipping_address

    def test_billing_update_ignored_while_mirroring(self, home_address, office_address):
        session = CheckoutSession()
        session.update_shipping_address(home_address)
        session.update_billing_address(office_address)
        assert session.billing_address == PostalAddress(**home_address)

    def test_separate_billing_address(self, home_address, office_address):
        session = CheckoutSession()
        session.toggle_use_shipping_as_billing()
        session.update_shipping_address(home_address)
        session.update_billing_address(office_address)

        assert session.use_shipping_as_billing is False
        assert session.billing_address == PostalAddress(**office_address)

        session.update_shipping_address(office_address | {"street": "2 Engine Row"})
        assert session.billing_address == PostalAddress(**office_address)

    def test_turning_mirroring_back_on_copies_shipping(self, home_address, office_address):
        session = CheckoutSession()
        session.toggle_use_shipping_as_billing()
        session.update_shipping_address(home_address)
        session.update_billing_address(office_address)

        session.toggle_use_shipping_as_billing()

        assert session.use_shipping_as_billing is True
        assert session.billing_address == session.shipping_address

    def test_incomplete_address_is_rejected(self):
        session = CheckoutSession()
        with pytest.raises(ValidationError):
            session.update_shipping_address({"street": "12 Analytical Way"})


class TestSelections:
    def test_payment_method_type_must_be_known(self):
        session = CheckoutSession()
        with pytest.raises(ValidationError):
            session.select_payment_method({"method_type": "cheque"})

    def test_card_payment_method(self, card):
        session = CheckoutSession()
        session.select_payment_method(card)
        assert session.payment_method.is_card
        assert session.payment_method.last4 == "4242"

    def test_order_notes(self):
        session = CheckoutSession()
        session.update_order_notes("Leave at the door")
        assert session.order_notes == "Leave at the door"
        session.update_order_notes(None)
        assert session.order_notes == ""


class TestSubmissionState:
    def test_declined_payment_clears_processing(self):
        session = CheckoutSession()
        session.begin_processing()
        session.record_payment_declined("Card declined")

        assert session.is_processing is False
        event = session._events[-1]
        assert isinstance(event, CheckoutPaymentDeclined)
        assert event.reason == "Card declined"

    def test_record_order(self):
        session = CheckoutSession()
        session.begin_processing()
        session.record_order("ord-42", status="pending", total=172.8)

        assert session.is_processing is False
        assert session.completed_order.order_id == "ord-42"
        event = session._events[-1]
        assert isinstance(event, CheckoutCompleted)
        assert event.order_id == "ord-42"

    def test_reset_restores_initial_state(self, home_address, card):
        session = CheckoutSession()
        session.update_shipping_address(home_address)
        session.select_shipping_method("standard")
        session.select_payment_method(card)
        session.update_order_notes("Ring twice")
        session.toggle_use_shipping_as_billing()
        session.go_to_step(4)
        session.begin_processing()

        session.reset()

        assert session.current_step == FIRST_STEP
        assert session.shipping_address is None
        assert session.billing_address is None
        assert session.use_shipping_as_billing is True
        assert session.shipping_method is None
        assert session.payment_method is None
        assert session.order_notes == ""
        assert session.is_processing is False
        assert session.completed_order is None
