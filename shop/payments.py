"""
Payment Reconciliation: opens payment intents for new orders and applies the
processor's webhook events to local payment and order state.

| event                          | intent     | order                    |
|--------------------------------|------------|--------------------------|
| payment_intent.succeeded       | SUCCESSFUL | SHIPPED                  |
| payment_intent.payment_failed  | FAILED     | unchanged                |
| payment_intent.canceled        | FAILED     | restocked, CANCELLED     |

Order changes apply only to PENDING orders; later events for a shipped or
cancelled order update the intent and leave the order alone.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from storefront.errors import BadRequest, NotFound, PaymentGatewayError

from . import gateways, orders
from .models import Order, OrderStatus, Payment, PaymentIntent, PaymentIntentStatus

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
PAYMENT_CANCELED = "payment_intent.canceled"

MAX_STATUS_INFO_LENGTH = 500


def to_minor_units(amount):
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _order_id(intent):
    order_id = (intent.get("metadata") or {}).get("order_id")
    if not order_id:
        raise BadRequest("Payment intent carries no order reference", description=f"Intent {intent.get('id')}")
    return order_id


def _failure_reason(intent):
    error = intent.get("last_payment_error") or {}
    reason = error.get("message") or intent.get("cancellation_reason")
    return reason[:MAX_STATUS_INFO_LENGTH] if reason else None


class PaymentService:
    def __init__(self, gateway, currency="usd"):
        self.gateway = gateway
        self.currency = currency

    def create(self, customer):
        """Place the customer's order and open a payment intent for its total."""
        order, total_amount = orders.create(customer)
        amount_in_cents = to_minor_units(total_amount)
        metadata = {"customer_id": str(customer.id), "order_id": str(order.pk)}

        try:
            intent = self.gateway.create_payment_intent(amount_in_cents, self.currency, metadata)
        except PaymentGatewayError as exc:
            # The order stays PENDING without a payment until it is retried or expired.
            logger.warning("Payment intent creation failed for order %s: %s", order.pk, exc.description or exc.message)
            raise

        with transaction.atomic():
            payment = Payment.objects.create(
                order=order,
                amount_in_cents=amount_in_cents,
                currency=self.currency,
            )
            PaymentIntent.objects.create(payment=payment, stripe_payment_id=intent.id)
        logger.info("Opened payment intent %s for order %s (%s cents)", intent.id, order.pk, amount_in_cents)

        return {
            "client_secret": intent.client_secret,
            "payment_intent_id": intent.id,
            "order_summary": orders.find_one(order.pk, customer),
        }

    def update_payment_status(self, stripe_payment_id, status, status_info=None):
        updated = PaymentIntent.objects.filter(stripe_payment_id=stripe_payment_id).update(
            status=status,
            status_info=status_info,
            updated_at=timezone.now(),
        )
        if not updated:
            raise NotFound(
                "Record to update/delete does not exist.",
                description=f"No payment intent with reference {stripe_payment_id}",
            )

    def _lock_pending_order(self, order_id, event_type):
        """Lock the order row; returns None when the order has already left PENDING."""
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise NotFound("Order not found")
        if order.status != OrderStatus.PENDING:
            logger.warning("Order %s is already %s, ignoring %s", order_id, order.status, event_type)
            return None
        return order

    @transaction.atomic
    def complete_payment(self, intent):
        order_id = _order_id(intent)
        self.update_payment_status(intent["id"], PaymentIntentStatus.SUCCESSFUL)
        if self._lock_pending_order(order_id, PAYMENT_SUCCEEDED) is None:
            return
        orders.update_status(order_id, OrderStatus.SHIPPED)

    def fail_payment(self, intent):
        self.update_payment_status(intent["id"], PaymentIntentStatus.FAILED, _failure_reason(intent))

    @transaction.atomic
    def cancel_payment(self, intent):
        order_id = _order_id(intent)
        self.update_payment_status(intent["id"], PaymentIntentStatus.FAILED, _failure_reason(intent))
        # Restock only orders whose goods never left, and only once.
        if self._lock_pending_order(order_id, PAYMENT_CANCELED) is None:
            return
        orders.restock_products(order_id)
        orders.update_status(order_id, OrderStatus.CANCELLED)

    def reconcile(self, event):
        """Apply one verified webhook event. Returns False for event types we ignore."""
        handlers = {
            PAYMENT_SUCCEEDED: self.complete_payment,
            PAYMENT_FAILED: self.fail_payment,
            PAYMENT_CANCELED: self.cancel_payment,
        }
        event_type = event["type"]
        handler = handlers.get(event_type)
        if handler is None:
            logger.info("Ignoring webhook event %s", event_type)
            return False

        intent = event["data"]["object"]
        logger.info("Reconciling %s for payment intent %s", event_type, intent.get("id"))
        handler(intent)
        return True


def get_payment_service():
    return PaymentService(gateways.get_payment_gateway(), settings.PAYMENT_CURRENCY)
