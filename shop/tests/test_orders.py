import logging
from decimal import Decimal

import pytest
from django.db import DatabaseError

from shop import carts, orders
from shop.models import CartItem, Order, OrderDetail, OrderStatus, Product
from storefront.errors import (
    BadRequest,
    Conflict,
    EmptyCartError,
    Forbidden,
    InsufficientStockError,
    NotFound,
)
from accounts.tokens import viewer_for

pytestmark = pytest.mark.django_db


@pytest.fixture
def shirt(make_product):
    return make_product(name="Shirt", price="10.00", stock=5)


@pytest.fixture
def socks(make_product):
    return make_product(name="Socks", price="4.00", stock=20)


@pytest.fixture
def placed_order(client_user, customer, shirt, socks, add_to_cart):
    add_to_cart(client_user, shirt, 2)
    add_to_cart(client_user, socks, 1)
    order, _ = orders.create(customer)
    return order


def test_create_order_decrements_stock_and_freezes_prices(client_user, customer, shirt, socks, add_to_cart):
    add_to_cart(client_user, shirt, 2)
    add_to_cart(client_user, socks, 1)

    order, total = orders.create(customer)

    assert total == Decimal("24.00")
    assert order.status == OrderStatus.PENDING
    assert str(order.customer_id) == customer.id
    shirt.refresh_from_db()
    socks.refresh_from_db()
    assert shirt.stock == 3
    assert socks.stock == 19

    details = {d.product_id: d for d in order.details.all()}
    assert details[shirt.pk].unit_price == Decimal("10.00")
    assert details[shirt.pk].quantity == 2
    assert details[socks.pk].unit_price == Decimal("4.00")
    assert order.total_amount == Decimal("24.00")

    assert not CartItem.objects.filter(cart__user=client_user).exists()


def test_later_price_changes_do_not_touch_placed_orders(placed_order, shirt):
    Product.objects.filter(pk=shirt.pk).update(price=Decimal("99.99"))

    detail = OrderDetail.objects.get(order=placed_order, product=shirt)
    assert detail.unit_price == Decimal("10.00")


def test_empty_cart_is_rejected_without_side_effects(customer, shirt):
    with pytest.raises(EmptyCartError) as excinfo:
        orders.create(customer)

    assert isinstance(excinfo.value, BadRequest)
    assert Order.objects.count() == 0
    shirt.refresh_from_db()
    assert shirt.stock == 5


def test_insufficient_stock_rolls_back_everything(client_user, customer, shirt, socks, add_to_cart):
    add_to_cart(client_user, socks, 3)
    add_to_cart(client_user, shirt, 6)

    with pytest.raises(InsufficientStockError) as excinfo:
        orders.create(customer)

    assert isinstance(excinfo.value, Conflict)
    assert Order.objects.count() == 0
    assert OrderDetail.objects.count() == 0
    shirt.refresh_from_db()
    socks.refresh_from_db()
    assert (shirt.stock, socks.stock) == (5, 20)
    assert CartItem.objects.filter(cart__user=client_user).count() == 2


def test_stock_taken_after_the_check_still_rolls_back(monkeypatch, client_user, customer, shirt, socks, add_to_cart):
    add_to_cart(client_user, socks, 1)
    add_to_cart(client_user, shirt, 4)
    stale_cart = carts.get_cart(customer)
    # Another order grabs the shirts between the check and the decrement.
    Product.objects.filter(pk=shirt.pk).update(stock=1)
    monkeypatch.setattr(orders.carts, "get_cart", lambda viewer: stale_cart)

    with pytest.raises(InsufficientStockError):
        orders.create(customer)

    assert Order.objects.count() == 0
    assert OrderDetail.objects.count() == 0
    shirt.refresh_from_db()
    socks.refresh_from_db()
    assert (shirt.stock, socks.stock) == (1, 20)


def test_cart_cleanup_failure_does_not_undo_the_order(monkeypatch, caplog, client_user, customer, shirt, add_to_cart):
    add_to_cart(client_user, shirt, 1)

    class BrokenItems:
        def filter(self, **kwargs):
            return self

        def delete(self):
            raise DatabaseError("connection lost")

    class BrokenCartItem:
        objects = BrokenItems()

    monkeypatch.setattr(orders, "CartItem", BrokenCartItem)

    with caplog.at_level(logging.ERROR, logger="shop.orders"):
        order, total = orders.create(customer)

    assert Order.objects.filter(pk=order.pk).exists()
    assert total == Decimal("10.00")
    assert "Could not clear cart" in caplog.text


def test_find_all_filters_by_customer(placed_order, other_client, customer):
    assert [o.pk for o in orders.find_all()] == [placed_order.pk]
    assert [o.pk for o in orders.find_all(customer_id=customer.id)] == [placed_order.pk]
    assert orders.find_all(customer_id=other_client.id) == []


def test_find_one_checks_ownership(placed_order, customer, other_client, manager):
    assert orders.find_one(placed_order.pk, customer).pk == placed_order.pk
    assert orders.find_one(placed_order.pk, manager).pk == placed_order.pk

    for status in OrderStatus.values:
        Order.objects.filter(pk=placed_order.pk).update(status=status)
        with pytest.raises(Forbidden):
            orders.find_one(placed_order.pk, viewer_for(other_client))


def test_find_one_unknown_order(customer):
    with pytest.raises(NotFound):
        orders.find_one("00000000-0000-0000-0000-000000000000", customer)


def test_update_status_overwrites_and_stamps_ship_date(placed_order):
    order = orders.update_status(placed_order.pk, OrderStatus.SHIPPED)

    assert order.status == OrderStatus.SHIPPED
    assert order.ship_date is not None


def test_update_status_rejects_unknown_values(placed_order):
    with pytest.raises(BadRequest):
        orders.update_status(placed_order.pk, "LOST")
    with pytest.raises(NotFound):
        orders.update_status("00000000-0000-0000-0000-000000000000", OrderStatus.CANCELLED)


def test_restock_products_gives_back_each_quantity(placed_order, shirt, socks):
    orders.restock_products(placed_order.pk)

    shirt.refresh_from_db()
    socks.refresh_from_db()
    assert (shirt.stock, socks.stock) == (5, 20)
