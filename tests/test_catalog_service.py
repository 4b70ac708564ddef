from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.data.models.subcategory import SubcategoryModel
from storefront.domain.errors import (
    DuplicateName,
    HasDependents,
    HierarchyMismatch,
    NotFound,
    ParentInactive,
    ValidationError,
)
from storefront.repos.catalog_repo import CategoryRepo, ProductRepo
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService


@pytest.fixture
def svc(db, storage):
    return CatalogService(db, storage=storage)


def test_deactivating_category_cascades_to_subcategories_and_products(db, svc, catalog):
    result = svc.set_category_active(catalog["category"], False)

    assert result["active"] is False
    assert result["subcategories_affected"] == 1
    assert result["products_affected"] == 1
    assert db.get(SubcategoryModel, catalog["subcategory"]).active is False
    assert db.get(ProductModel, catalog["product"]).active is False


def test_reactivating_category_does_not_cascade(db, svc, catalog):
    svc.set_category_active(catalog["category"], False)
    result = svc.set_category_active(catalog["category"], True)

    assert result["subcategories_affected"] == 0
    assert db.get(CategoryModel, catalog["category"]).active is True
    assert db.get(SubcategoryModel, catalog["subcategory"]).active is False
    assert db.get(ProductModel, catalog["product"]).active is False


def test_toggle_category_flips_flag(svc, catalog):
    assert svc.toggle_category(catalog["category"])["active"] is False
    assert svc.toggle_category(catalog["category"])["active"] is True


def test_failed_cascade_rolls_back_parent_flag(db, svc, catalog, monkeypatch):
    def boom(self, category_id):
        raise RuntimeError("connection lost mid cascade")

    monkeypatch.setattr(CategoryRepo, "deactivate_products", boom)

    with pytest.raises(RuntimeError):
        svc.set_category_active(catalog["category"], False)

    assert db.get(CategoryModel, catalog["category"]).active is True
    assert db.get(SubcategoryModel, catalog["subcategory"]).active is True
    assert db.get(ProductModel, catalog["product"]).active is True


def test_deactivating_subcategory_cascades_to_products_only(db, svc, catalog):
    result = svc.set_subcategory_active(catalog["subcategory"], False)

    assert result["products_affected"] == 1
    assert db.get(CategoryModel, catalog["category"]).active is True
    assert db.get(ProductModel, catalog["product"]).active is False


def test_update_category_with_active_false_runs_cascade(db, svc, catalog):
    svc.update_category(catalog["category"], description="Cold drinks", active=False)

    assert db.get(CategoryModel, catalog["category"]).description == "Cold drinks"
    assert db.get(ProductModel, catalog["product"]).active is False


def test_duplicate_category_name_rejected(svc, catalog):
    with pytest.raises(DuplicateName):
        svc.create_category("Beverages")


def test_subcategory_names_unique_per_category_only(svc, catalog):
    snacks = svc.create_category("Snacks")
    svc.create_subcategory(snacks.id, "Soda")

    with pytest.raises(DuplicateName):
        svc.create_subcategory(catalog["category"], "Soda")


def test_subcategory_under_inactive_category_rejected(svc, catalog):
    svc.set_category_active(catalog["category"], False)

    with pytest.raises(ParentInactive):
        svc.create_subcategory(catalog["category"], "Juice")


def test_category_name_length_validated(svc):
    with pytest.raises(ValidationError):
        svc.create_category("B")


def test_product_hierarchy_mismatch(svc, catalog):
    snacks = svc.create_category("Snacks")

    with pytest.raises(HierarchyMismatch):
        svc.create_product(
            category_id=snacks.id,
            subcategory_id=catalog["subcategory"],
            name="Chips",
            price="2.00",
        )


def test_product_under_missing_subcategory(svc, catalog):
    with pytest.raises(NotFound):
        svc.create_product(
            category_id=catalog["category"],
            subcategory_id=999,
            name="Lemonade",
            price="2.00",
        )


def test_product_negative_price_and_stock_rejected(svc, catalog):
    with pytest.raises(ValidationError):
        svc.create_product(catalog["category"], catalog["subcategory"], "Water", price="-1")
    with pytest.raises(ValidationError):
        svc.create_product(catalog["category"], catalog["subcategory"], "Water", price="1", stock=-3)


def test_delete_category_with_dependents_rejected(svc, catalog):
    with pytest.raises(HasDependents):
        svc.delete_category(catalog["category"])


def test_delete_empty_category(db, svc):
    empty = svc.create_category("Empty")
    svc.delete_category(empty.id)

    assert db.get(CategoryModel, empty.id) is None


def test_delete_product_removes_cart_lines(db, svc, catalog, users):
    CartService(db).add_line(users["alice"], catalog["product"], 2)

    svc.delete_product(catalog["product"])

    assert db.get(ProductModel, catalog["product"]) is None
    assert CartService(db).get_cart(users["alice"])["items"] == []


def test_list_products_filters_and_pages(svc, catalog):
    for i in range(3):
        svc.create_product(catalog["category"], catalog["subcategory"], f"Tonic {i}", price="2.00", stock=0)

    page = svc.list_products(search="tonic", limit=2)
    assert page["total"] == 3
    assert page["pages"] == 2
    assert len(page["items"]) == 2

    in_stock = svc.list_products(in_stock=True)
    assert [p.name for p in in_stock["items"]] == ["Cola"]


def test_category_stats(svc, catalog):
    svc.create_product(catalog["category"], catalog["subcategory"], "Fanta", price="2.00", stock=5)
    svc.toggle_product(catalog["product"])

    stats = svc.category_stats(catalog["category"])

    assert stats["total_products"] == 2
    assert stats["active_products"] == 1
    assert stats["inactive_products"] == 1
    assert stats["stock_total"] == 15
    assert stats["inventory_value"] == Decimal("25.00")


def test_adjust_stock_operations(svc, catalog):
    assert svc.adjust_stock(catalog["product"], "decrease", 4).stock == 6
    assert svc.adjust_stock(catalog["product"], "increase", 1).stock == 7
    assert svc.adjust_stock(catalog["product"], "set", 0).stock == 0

    with pytest.raises(ValidationError):
        svc.adjust_stock(catalog["product"], "double", 2)


def test_set_product_image_replaces_old_file(svc, storage, catalog):
    storage.ensure_dir()
    (storage.root / "old.png").write_bytes(b"old")
    svc.set_product_image(catalog["product"], "old.png")

    product = svc.set_product_image(catalog["product"], "new.png")

    assert product.image == "new.png"
    assert product.image_url.endswith("/uploads/new.png")
    assert not (storage.root / "old.png").exists()


def test_product_stats(svc, catalog):
    stats = svc.product_stats(catalog["product"])

    assert stats["name"] == "Cola"
    assert stats["total_products"] == 1
    assert stats["stock_total"] == 10
    assert stats["inventory_value"] == Decimal("15.00")


def test_delete_product_retries_transient_db_error(db, svc, catalog, monkeypatch):
    count_order_items = ProductRepo.count_order_items
    attempts = []

    def flaky(self, product_id):
        attempts.append(product_id)
        if len(attempts) == 1:
            raise OperationalError("SELECT count(*)", {}, Exception("deadlock detected"))
        return count_order_items(self, product_id)

    monkeypatch.setattr(ProductRepo, "count_order_items", flaky)

    svc.delete_product(catalog["product"])

    assert len(attempts) == 2
    assert db.get(ProductModel, catalog["product"]) is None
