from decimal import Decimal

import pytest

from storefront.domain.errors import Forbidden, InsufficientStock, NotFound, ProductInactive, ValidationError
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService


@pytest.fixture
def cart(db):
    return CartService(db)


def test_add_same_product_twice_merges_lines(cart, catalog, users):
    cart.add_line(users["alice"], catalog["product"], 2)
    result = cart.add_line(users["alice"], catalog["product"], 1)

    assert len(result["items"]) == 1
    assert result["items"][0]["quantity"] == 3
    assert result["item_count"] == 3
    assert result["total"] == Decimal("4.50")


def test_merge_keeps_price_snapshot(db, cart, catalog, users):
    cart.add_line(users["alice"], catalog["product"], 1)
    CatalogService(db).update_product(catalog["product"], price="2.00")

    result = cart.add_line(users["alice"], catalog["product"], 1)

    assert result["items"][0]["unit_price"] == Decimal("1.50")
    assert result["total"] == Decimal("3.00")


def test_combined_quantity_checked_against_stock(cart, catalog, users):
    cart.add_line(users["alice"], catalog["product"], 8)

    with pytest.raises(InsufficientStock):
        cart.add_line(users["alice"], catalog["product"], 3)

    assert cart.get_cart(users["alice"])["items"][0]["quantity"] == 8


def test_inactive_product_cannot_be_added(db, cart, catalog, users):
    CatalogService(db).set_product_active(catalog["product"], False)

    with pytest.raises(ProductInactive):
        cart.add_line(users["alice"], catalog["product"], 1)


def test_unknown_product_and_bad_quantity(cart, users):
    with pytest.raises(NotFound):
        cart.add_line(users["alice"], 999, 1)
    with pytest.raises(ValidationError):
        cart.add_line(users["alice"], 999, 0)


def test_update_quantity_checks_current_stock(cart, catalog, users):
    line_id = cart.add_line(users["alice"], catalog["product"], 1)["items"][0]["id"]

    assert cart.update_quantity(users["alice"], line_id, 5)["item_count"] == 5
    with pytest.raises(InsufficientStock):
        cart.update_quantity(users["alice"], line_id, 11)


def test_lines_of_another_user_are_off_limits(cart, catalog, users):
    line_id = cart.add_line(users["alice"], catalog["product"], 1)["items"][0]["id"]

    with pytest.raises(Forbidden):
        cart.remove_line(users["bob"], line_id)
    with pytest.raises(Forbidden):
        cart.update_quantity(users["bob"], line_id, 2)


def test_remove_and_clear(cart, catalog, users):
    line_id = cart.add_line(users["alice"], catalog["product"], 1)["items"][0]["id"]
    assert cart.remove_line(users["alice"], line_id)["items"] == []

    cart.add_line(users["alice"], catalog["product"], 2)
    assert cart.clear(users["alice"]) == 1
    assert cart.get_cart(users["alice"])["total"] == Decimal("0.00")


def test_carts_are_per_user(cart, catalog, users):
    cart.add_line(users["alice"], catalog["product"], 2)

    assert cart.get_cart(users["bob"])["items"] == []


def test_unknown_user_cannot_add_lines(cart, catalog):
    with pytest.raises(NotFound):
        cart.add_line(9999, catalog["product"], 1)


def test_add_line_locks_product_before_looking_for_existing_line(cart, catalog, users, monkeypatch):
    calls = []
    lock = cart.inventory.lock
    lookup = cart.repo.get_item_by_product

    def recording_lock(product_ids):
        product_ids = list(product_ids)
        calls.append(("lock", product_ids))
        return lock(product_ids)

    def recording_lookup(user_id, product_id):
        calls.append(("lookup", product_id))
        return lookup(user_id, product_id)

    monkeypatch.setattr(cart.inventory, "lock", recording_lock)
    monkeypatch.setattr(cart.repo, "get_item_by_product", recording_lookup)

    cart.add_line(users["alice"], catalog["product"], 1)

    assert calls == [("lock", [catalog["product"]]), ("lookup", catalog["product"])]
