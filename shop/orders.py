"""
Order Engine: turns a cart into an order and keeps stock consistent with it.

Stock moves only inside ``transaction.atomic`` blocks. Decrements are
conditional updates (``stock >= quantity``) whose row count is checked, so a
concurrent order that wins the race makes this one roll back instead of
driving stock negative.
"""
import logging
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from accounts.permissions import is_manager
from storefront.errors import BadRequest, EmptyCartError, Forbidden, InsufficientStockError, NotFound

from . import carts
from .filters import OrderFilter
from .models import CartItem, Order, OrderDetail, OrderStatus, Product

logger = logging.getLogger(__name__)


def _orders():
    return Order.objects.select_related("customer", "payment").prefetch_related(
        "details__product", "payment__payment_intents"
    )


def _insufficient_stock(product):
    return InsufficientStockError(description=f"Only {product.stock} unit(s) of '{product.name}' left")


def create(customer):
    """
    Place an order for everything in ``customer``'s cart.

    Returns ``(order, total_amount)``. Nothing is written when the cart is
    empty or any line exceeds the stock on hand.
    """
    cart = carts.get_cart(customer)
    # Fixed product order keeps row locks acquired in the same sequence.
    items = sorted(cart.items.all(), key=lambda item: str(item.product_id))
    if not items:
        raise EmptyCartError()

    for item in items:
        if item.quantity > item.product.stock:
            raise _insufficient_stock(item.product)

    total_amount = sum((item.product.price * item.quantity for item in items), Decimal("0.00"))

    with transaction.atomic():
        order = Order.objects.create(customer_id=customer.id, status=OrderStatus.PENDING)
        OrderDetail.objects.bulk_create(
            OrderDetail(
                order=order,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.product.price,
            )
            for item in items
        )
        for item in items:
            updated = Product.objects.filter(pk=item.product_id, stock__gte=item.quantity).update(
                stock=F("stock") - item.quantity
            )
            if not updated:
                item.product.refresh_from_db(fields=["stock"])
                raise _insufficient_stock(item.product)

    logger.info("Created order %s for customer %s, total %s", order.pk, customer.id, total_amount)

    try:
        CartItem.objects.filter(cart_id=cart.pk).delete()
    except DatabaseError:
        logger.exception("Could not clear cart %s after placing order %s", cart.pk, order.pk)

    return _orders().get(pk=order.pk), total_amount


def find_all(customer_id=None, status=None):
    data = {}
    if customer_id is not None:
        data["customer_id"] = str(customer_id)
    if status is not None:
        data["status"] = status
    return list(OrderFilter(data, queryset=_orders()).qs)


def find_one(order_id, viewer):
    order = _orders().filter(pk=order_id).first()
    if order is None:
        raise NotFound("Order not found")
    if not is_manager(viewer) and viewer.id != str(order.customer_id):
        raise Forbidden(
            "Do not have permission to request order.",
            description="Server refused to perform action due to insufficient rights",
        )
    return order


def update_status(order_id, status):
    """Overwrite the order status. Transition rules are up to the caller."""
    if status not in OrderStatus.values:
        raise BadRequest(f"Unknown order status '{status}'.")
    changes = {"status": status, "updated_at": timezone.now()}
    if status == OrderStatus.SHIPPED:
        changes["ship_date"] = timezone.now()
    if not Order.objects.filter(pk=order_id).update(**changes):
        raise NotFound("Record to update does not exist.")
    logger.info("Order %s is now %s", order_id, status)
    return _orders().get(pk=order_id)


def restock_products(order_id):
    """Give every unit of the order back to stock in one transaction."""
    details = sorted(OrderDetail.objects.filter(order_id=order_id).values_list("product_id", "quantity"))
    with transaction.atomic():
        for product_id, quantity in details:
            Product.objects.filter(pk=product_id).update(stock=F("stock") + quantity)
    logger.info("Restocked %d product(s) from order %s", len(details), order_id)
