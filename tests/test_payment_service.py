from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.core.errors import (
    AmountMismatch,
    BookingNotFound,
    InvalidRequest,
    InvalidTransition,
    OrderNotFound,
)
from app.models.audit_log import AuditLog
from app.models.booking import Booking
from app.models.enums import BookingStatus, PaymentStatus
from app.models.payment import PaymentOrder
from app.services.events import subscribe
from app.services.payment_service import (
    OUTCOMES,
    create_payment_order,
    expected_signature,
    receipt_for,
    signature_matches,
    to_minor_units,
    verify_payment,
)
from app.services.razorpay_client import RazorpayClient, RazorpayConfig
from tests.factories import make_booking

SECRET = "rzp_test_secret"
START = datetime(2030, 6, 1, 10, 0, tzinfo=timezone.utc)
END = datetime(2030, 6, 1, 14, 0, tzinfo=timezone.utc)


class FakeGateway:
    def __init__(self):
        self.calls = []

    def create_order(self, *, amount_minor, currency, receipt, notes=None):
        self.calls.append({"amount_minor": amount_minor, "currency": currency, "receipt": receipt, "notes": notes})
        return {"id": f"order_test_{len(self.calls)}", "receipt": receipt, "amount": amount_minor}


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def booking(db, client_user, provider):
    return make_booking(db, client_user, provider, START, END, total="2000")


def sign(order_id: str, payment_id: str) -> str:
    return expected_signature(SECRET, order_id, payment_id)


@pytest.mark.parametrize("amount, minor", [
    (Decimal("2000"), 200000),
    (Decimal("2000.01"), 200001),
    (Decimal("0.10"), 10),
    (Decimal("19.995"), 2000),
])
def test_to_minor_units(amount, minor):
    assert to_minor_units(amount) == minor


def test_signature_is_hmac_sha256_of_order_and_payment():
    sig = expected_signature(SECRET, "order_1", "pay_1")
    assert len(sig) == 64
    assert signature_matches(SECRET, "order_1", "pay_1", sig)
    assert not signature_matches(SECRET, "order_1", "pay_2", sig)
    assert not signature_matches("other", "order_1", "pay_1", sig)
    assert not signature_matches(SECRET, "order_1", "pay_1", "")
    assert not signature_matches(SECRET, "order_1", "pay_1", sig.upper())


def test_every_terminal_order_status_has_an_outcome():
    assert set(OUTCOMES) == {s for s in PaymentStatus if s is not PaymentStatus.CREATED}


class TestCreatePaymentOrder:
    @pytest.mark.parametrize("amount", ["2000", "2000.00", "2000.01", "1999.99"])
    def test_amount_within_tolerance(self, db, client_user, booking, gateway, amount):
        order = create_payment_order(db, booking.id, amount, client_user.id, gateway)
        assert order.status == PaymentStatus.CREATED.value
        assert order.amount == Decimal("2000.00")
        # Always the stored total, never the requested figure
        assert order.amount_minor == 200000
        assert gateway.calls[0]["amount_minor"] == 200000
        assert gateway.calls[0]["currency"] == "INR"
        assert order.gateway_order_id == "order_test_1"

    @pytest.mark.parametrize("amount", ["2500", "2000.02", "1999.98", "1"])
    def test_amount_mismatch_is_rejected_and_audited(self, db, client_user, booking, gateway, amount, caplog):
        with pytest.raises(AmountMismatch) as exc:
            create_payment_order(db, booking.id, amount, client_user.id, gateway)
        assert gateway.calls == []
        assert db.query(PaymentOrder).count() == 0
        assert db.query(AuditLog).filter(AuditLog.action == "payment.amount_mismatch").count() == 1
        assert "payment_amount_mismatch" in caplog.text
        # Client sees a generic message only
        assert amount not in exc.value.to_detail()["message"]

    @pytest.mark.parametrize("amount", ["abc", "-5", "0", "NaN", None])
    def test_malformed_amount(self, db, client_user, booking, gateway, amount):
        with pytest.raises(InvalidRequest):
            create_payment_order(db, booking.id, amount, client_user.id, gateway)

    def test_foreign_and_missing_bookings_look_the_same(self, db, booking, other_client, gateway):
        with pytest.raises(BookingNotFound) as foreign:
            create_payment_order(db, booking.id, "2000", other_client.id, gateway)
        with pytest.raises(BookingNotFound) as missing:
            create_payment_order(db, "missing", "2000", other_client.id, gateway)
        assert foreign.value.to_detail() == missing.value.to_detail()

    @pytest.mark.parametrize("status", ["confirmed", "cancelled", "rejected", "completed"])
    def test_only_pending_bookings_can_be_paid(self, db, client_user, provider, gateway, status):
        b = make_booking(db, client_user, provider, START, END, status=status, total="2000")
        with pytest.raises(InvalidTransition):
            create_payment_order(db, b.id, "2000", client_user.id, gateway)

    def test_retry_after_failed_payment_reopens_the_order(self, db, client_user, booking, gateway):
        first = create_payment_order(db, booking.id, "2000", client_user.id, gateway)
        verify_payment(db, first.gateway_order_id, "pay_bad", "not-a-signature", client_user.id, secret=SECRET)

        again = create_payment_order(db, booking.id, "2000", client_user.id, gateway)
        assert again.id == first.id
        assert again.status == PaymentStatus.CREATED.value
        assert again.gateway_order_id == "order_test_2"
        assert again.gateway_payment_id is None
        assert db.query(PaymentOrder).count() == 1

    def test_receipt_fits_gateway_limit(self, db, client_user, booking, gateway):
        order = create_payment_order(db, booking.id, "2000", client_user.id, gateway)
        assert gateway.calls[0]["receipt"] == order.receipt == receipt_for(booking.id)
        assert order.receipt.startswith("bk_")
        assert len(order.receipt) <= 40

    def test_sandbox_gateway_issues_local_order_ids(self, db, client_user, booking):
        gw = RazorpayClient(RazorpayConfig(key_id="", key_secret="", sandbox=True))
        order = create_payment_order(db, booking.id, "2000", client_user.id, gw)
        assert order.gateway_order_id.startswith("order_sandbox_")


class TestVerifyPayment:
    @pytest.fixture
    def order(self, db, client_user, booking, gateway):
        return create_payment_order(db, booking.id, "2000", client_user.id, gateway)

    def test_valid_signature_confirms_booking(self, db, client_user, booking, order):
        seen = []
        subscribe(seen.append)
        result = verify_payment(db, order.gateway_order_id, "pay_1", sign(order.gateway_order_id, "pay_1"),
                                client_user.id, secret=SECRET)
        assert result.status == "confirmed"
        assert result.booking_status == BookingStatus.CONFIRMED.value
        assert result.replayed is False

        db.expire_all()
        stored = db.get(PaymentOrder, order.id)
        assert stored.status == PaymentStatus.SUCCESS.value
        assert stored.gateway_payment_id == "pay_1"
        assert db.get(Booking, booking.id).status == "confirmed"
        assert [e.status for e in seen] == ["confirmed"]

    def test_verify_is_idempotent(self, db, client_user, booking, order):
        sig = sign(order.gateway_order_id, "pay_1")
        first = verify_payment(db, order.gateway_order_id, "pay_1", sig, client_user.id, secret=SECRET)
        second = verify_payment(db, order.gateway_order_id, "pay_1", sig, client_user.id, secret=SECRET)

        assert (first.status, first.booking_status) == (second.status, second.booking_status)
        assert second.replayed is True
        assert db.query(AuditLog).filter(AuditLog.action == "booking.confirmed").count() == 1

    def test_signature_mismatch_fails_order_and_keeps_booking_pending(self, db, client_user, booking, order, caplog):
        result = verify_payment(db, order.gateway_order_id, "pay_1", sign(order.gateway_order_id, "pay_2"),
                                client_user.id, secret=SECRET)
        assert result.status == "failed"
        assert result.booking_status == "pending"
        db.expire_all()
        assert db.get(PaymentOrder, order.id).status == "failed"
        assert db.get(Booking, booking.id).status == "pending"
        assert "payment_signature_mismatch" in caplog.text

    def test_replay_after_failure_reports_failure(self, db, client_user, order):
        verify_payment(db, order.gateway_order_id, "pay_1", "bad", client_user.id, secret=SECRET)
        # A later valid signature for the same order does not resurrect it
        result = verify_payment(db, order.gateway_order_id, "pay_1", sign(order.gateway_order_id, "pay_1"),
                                client_user.id, secret=SECRET)
        assert result.status == "failed"
        assert result.replayed is True

    def test_other_clients_order_is_not_found(self, db, other_client, order):
        with pytest.raises(OrderNotFound):
            verify_payment(db, order.gateway_order_id, "pay_1", sign(order.gateway_order_id, "pay_1"),
                           other_client.id, secret=SECRET)
        db.expire_all()
        assert db.get(PaymentOrder, order.id).status == "created"

    def test_unknown_order_is_not_found(self, db, client_user):
        with pytest.raises(OrderNotFound):
            verify_payment(db, "order_missing", "pay_1", "sig", client_user.id, secret=SECRET)

    @pytest.mark.parametrize("args", [("", "pay", "sig"), ("order", "", "sig"), ("order", "pay", "")])
    def test_missing_parameters(self, db, client_user, args):
        with pytest.raises(InvalidRequest):
            verify_payment(db, *args, client_user.id, secret=SECRET)

    def test_confirm_failure_rolls_back_the_order(self, db, client_user, booking, order):
        # Booking was rejected after the order was opened
        db.get(Booking, booking.id).status = "rejected"
        db.commit()
        with pytest.raises(InvalidTransition):
            verify_payment(db, order.gateway_order_id, "pay_1", sign(order.gateway_order_id, "pay_1"),
                           client_user.id, secret=SECRET)
        db.expire_all()
        assert db.get(PaymentOrder, order.id).status == "created"
        assert db.get(Booking, booking.id).status == "rejected"
