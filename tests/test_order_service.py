from decimal import Decimal

import pytest

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.product import ProductModel
from storefront.domain.errors import (
    DeleteNotAllowed,
    EmptyCart,
    Forbidden,
    InsufficientStock,
    InvalidState,
    NotCancellable,
    NotFound,
    ProductInactive,
    ValidationError,
)
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.order_service import OrderService

ADDRESS = "Main Street 1, Springfield"
PHONE = "+48 600 100 200"


@pytest.fixture
def orders(db):
    return OrderService(db)


@pytest.fixture
def place_order(db, orders, catalog, users):
    def _place(quantity=3, user="alice"):
        CartService(db).add_line(users[user], catalog["product"], quantity)
        return orders.create_from_cart(users[user], ADDRESS, PHONE)
    return _place


def stock_of(db, product_id):
    return db.get(ProductModel, product_id).stock


def test_checkout_and_cancel_scenario(db, orders, catalog, users):
    cart = CartService(db)
    assert cart.add_line(users["alice"], catalog["product"], 3)["total"] == Decimal("4.50")

    order = orders.create_from_cart(users["alice"], ADDRESS, PHONE, notes="Leave at the door")

    assert order.status == "pending"
    assert order.total == Decimal("4.50")
    assert len(order.items) == 1
    line = order.items[0]
    assert (line.quantity, line.unit_price, line.subtotal) == (3, Decimal("1.50"), Decimal("4.50"))
    assert stock_of(db, catalog["product"]) == 7
    assert cart.get_cart(users["alice"])["items"] == []

    cancelled = orders.cancel(order.id)
    assert cancelled.status == "cancelled"
    assert cancelled.cancelled_at is not None
    assert stock_of(db, catalog["product"]) == 10

    with pytest.raises(NotCancellable):
        orders.cancel(order.id)


def test_checkout_with_empty_cart(orders, users):
    with pytest.raises(EmptyCart):
        orders.create_from_cart(users["alice"], ADDRESS, PHONE)


def test_checkout_validates_shipping_details(db, orders, catalog, users):
    CartService(db).add_line(users["alice"], catalog["product"], 1)

    with pytest.raises(ValidationError):
        orders.create_from_cart(users["alice"], "short", PHONE)
    with pytest.raises(ValidationError):
        orders.create_from_cart(users["alice"], ADDRESS, "")


def test_failed_checkout_leaves_everything_untouched(db, orders, catalog, users):
    cart = CartService(db)
    cart.add_line(users["alice"], catalog["product"], 3)
    CatalogService(db).adjust_stock(catalog["product"], "set", 2)

    with pytest.raises(InsufficientStock):
        orders.create_from_cart(users["alice"], ADDRESS, PHONE)

    assert stock_of(db, catalog["product"]) == 2
    assert db.query(OrderModel).count() == 0
    assert db.query(OrderItemModel).count() == 0
    assert cart.get_cart(users["alice"])["item_count"] == 3


def test_checkout_revalidates_product_activity(db, orders, catalog, users):
    CartService(db).add_line(users["alice"], catalog["product"], 1)
    CatalogService(db).set_category_active(catalog["category"], False)

    with pytest.raises(ProductInactive):
        orders.create_from_cart(users["alice"], ADDRESS, PHONE)

    assert stock_of(db, catalog["product"]) == 10


def test_forward_transitions_stamp_timestamps(orders, place_order):
    order = place_order()

    paid = orders.change_status(order.id, "paid")
    paid_at = paid.paid_at
    assert paid_at is not None

    shipped = orders.change_status(order.id, "shipped")
    assert shipped.shipped_at is not None
    assert shipped.paid_at == paid_at

    delivered = orders.change_status(order.id, "delivered")
    assert delivered.status == "delivered"
    assert delivered.delivered_at is not None


@pytest.mark.parametrize("target", ["shipped", "delivered", "pending", "refunded"])
def test_invalid_transitions_from_pending(orders, place_order, target):
    order = place_order()

    with pytest.raises(InvalidState):
        orders.change_status(order.id, target)


def test_terminal_states_reject_every_change(orders, place_order):
    order = place_order()
    for status in ("paid", "shipped", "delivered"):
        orders.change_status(order.id, status)

    for target in ("pending", "paid", "shipped", "delivered", "cancelled"):
        with pytest.raises(InvalidState):
            orders.change_status(order.id, target)

    with pytest.raises(NotCancellable):
        orders.cancel(order.id)


def test_cancel_from_shipped_rejected(db, orders, place_order, catalog):
    order = place_order()
    orders.change_status(order.id, "paid")
    orders.change_status(order.id, "shipped")

    with pytest.raises(NotCancellable):
        orders.cancel(order.id)
    assert stock_of(db, catalog["product"]) == 7


def test_status_change_to_cancelled_restores_stock(db, orders, place_order, catalog):
    order = place_order()
    orders.change_status(order.id, "paid")

    orders.change_status(order.id, "cancelled")

    assert stock_of(db, catalog["product"]) == 10


def test_cancel_by_non_owner(orders, place_order, users):
    order = place_order()

    with pytest.raises(Forbidden):
        orders.cancel(order.id, users["bob"])
    with pytest.raises(Forbidden):
        orders.get_order(order.id, users["bob"])


def test_delete_pending_order_restores_stock(db, orders, place_order, catalog):
    order = place_order()

    orders.delete(order.id)

    assert db.get(OrderModel, order.id) is None
    assert db.query(OrderItemModel).count() == 0
    assert stock_of(db, catalog["product"]) == 10


def test_delete_paid_order_not_allowed(orders, place_order):
    order = place_order()
    orders.change_status(order.id, "paid")

    with pytest.raises(DeleteNotAllowed):
        orders.delete(order.id)


def test_delete_cancelled_order_keeps_stock(db, orders, place_order, catalog):
    order = place_order()
    orders.cancel(order.id)

    orders.delete(order.id)

    assert stock_of(db, catalog["product"]) == 10


def test_update_line_quantity_moves_stock_and_total(db, orders, place_order, catalog):
    order = place_order()
    line_id = order.items[0].id

    updated = orders.update_line_quantity(order.id, line_id, 5)
    assert updated.total == Decimal("7.50")
    assert stock_of(db, catalog["product"]) == 5

    updated = orders.update_line_quantity(order.id, line_id, 1)
    assert updated.total == Decimal("1.50")
    assert stock_of(db, catalog["product"]) == 9


def test_order_lines_frozen_after_pending(orders, place_order):
    order = place_order()
    orders.change_status(order.id, "paid")

    with pytest.raises(InvalidState):
        orders.update_line_quantity(order.id, order.items[0].id, 2)


def test_best_sellers_skip_cancelled_orders(db, orders, place_order, catalog, users):
    place_order(quantity=2)
    cancelled = place_order(quantity=5, user="bob")
    orders.cancel(cancelled.id)

    ranking = orders.best_sellers()

    assert ranking == [{"product_id": catalog["product"], "total_quantity": 2}]


def test_list_orders_per_user_and_by_status(orders, place_order, users):
    first = place_order(quantity=1)
    place_order(quantity=1, user="bob")
    orders.change_status(first.id, "paid")

    assert [o.id for o in orders.list_orders(users["alice"])] == [first.id]
    assert [o.id for o in orders.list_all_orders("paid")] == [first.id]
    assert len(orders.list_all_orders()) == 2

    with pytest.raises(InvalidState):
        orders.list_all_orders("lost")


def test_checkout_for_unknown_user(orders):
    with pytest.raises(NotFound):
        orders.create_from_cart(9999, ADDRESS, PHONE)
