# storefront/services/catalog_service.py
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from storefront.data.database import transaction
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
from storefront.repos.catalog_repo import CategoryRepo, ProductRepo, SubcategoryRepo
from storefront.services.inventory_service import InventoryService
from storefront.services.storage_service import LocalImageStorage, is_valid_image_ref
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _check_length(value: str | None, field: str, min_len: int, max_len: int) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} jest wymagana")
    value = value.strip()
    if not min_len <= len(value) <= max_len:
        raise ValidationError(f"{field} musi miec od {min_len} do {max_len} znakow")
    return value


def _to_price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Cena musi byc liczba")
    if not price.is_finite() or price < 0:
        raise ValidationError("Cena nie moze byc ujemna")
    return price


def _to_stock(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Stan magazynowy musi byc liczba calkowita")
    if value < 0:
        raise ValidationError("Stan magazynowy nie moze byc ujemny")
    return value


class CatalogService:
    """
    Katalog: kategorie -> podkategorie -> produkty.
    Jeden serwis trzyma repo dla wszystkich trzech encji (walidacja rodzica przy tworzeniu
    potrzebuje ich naraz).

    Kaskada:
    -dezaktywacja kategorii => wszystkie jej podkategorie i produkty nieaktywne
    -dezaktywacja podkategorii => jej produkty nieaktywne
    -aktywacja NIGDY nie kaskaduje
    Calosc w jednej transakcji, blad w polowie = rollback razem z flaga rodzica.
    """

    def __init__(self, db: Session, storage: LocalImageStorage | None = None):
        self.db = db
        self.categories = CategoryRepo(db)
        self.subcategories = SubcategoryRepo(db)
        self.products = ProductRepo(db)
        self.inventory = InventoryService(db)
        self.storage = storage or LocalImageStorage()

    # =====================================================
    # KATEGORIE
    # =====================================================
    def list_categories(self, active: bool | None = None, with_subcategories: bool = False) -> List[CategoryModel]:
        return self.categories.list(active=active, with_subcategories=with_subcategories)

    def get_category(self, category_id: int) -> CategoryModel:
        category = self.categories.get(category_id)
        if not category:
            raise NotFound(f"Kategoria {category_id} nie istnieje")
        return category

    def get_category_detail(self, category_id: int) -> Tuple[CategoryModel, int]:
        category = self.get_category(category_id)
        return category, self.categories.count_products(category_id)

    @db_retry()
    def create_category(self, name: str, description: str | None = None) -> CategoryModel:
        name = _check_length(name, "Nazwa kategorii", 2, 100)

        with transaction(self.db):
            if self.categories.get_by_name(name):
                raise DuplicateName(f"Kategoria '{name}' juz istnieje")

            category = self.categories.add(
                CategoryModel(name=name, description=description or None, active=True)
            )

        logger.info(f"Category {category.id} '{name}' created")
        return category

    @db_retry()
    def update_category(
        self,
        category_id: int,
        name: str | None = None,
        description: str | None = None,
        active: bool | None = None,
    ) -> CategoryModel:
        with transaction(self.db):
            category = self.get_category(category_id)

            if name is not None and name.strip() != category.name:
                name = _check_length(name, "Nazwa kategorii", 2, 100)
                if self.categories.get_by_name(name):
                    raise DuplicateName(f"Kategoria '{name}' juz istnieje")
                category.name = name

            if description is not None:
                category.description = description

            if active is not None and active != category.active:
                self._apply_category_active(category, active)

        logger.info(f"Category {category_id} updated")
        return category

    @db_retry()
    def set_category_active(self, category_id: int, active: bool) -> Dict[str, Any]:
        with transaction(self.db):
            category = self.get_category(category_id)
            return self._apply_category_active(category, active)

    @db_retry()
    def toggle_category(self, category_id: int) -> Dict[str, Any]:
        with transaction(self.db):
            category = self.get_category(category_id)
            return self._apply_category_active(category, not category.active)

    def _apply_category_active(self, category: CategoryModel, active: bool) -> Dict[str, Any]:
        category.active = active
        self.db.flush()

        subcategories_affected = 0
        products_affected = 0

        if not active:
            logger.info(f"Deactivating category {category.id} '{category.name}'")
            subcategories_affected = self.categories.deactivate_subcategories(category.id)
            products_affected = self.categories.deactivate_products(category.id)
            #bulk update omija identity map, wszystko co zaladowane trzeba przeladowac
            self.db.expire_all()

            logger.info(
                f"Category {category.id} deactivated together with "
                f"{subcategories_affected} subcategories and {products_affected} products"
            )
        else:
            logger.info(f"Category {category.id} activated (no cascade)")

        return {
            "id": category.id,
            "active": active,
            "subcategories_affected": subcategories_affected,
            "products_affected": products_affected,
        }

    @db_retry()
    def delete_category(self, category_id: int) -> None:
        with transaction(self.db):
            category = self.get_category(category_id)

            subcategories = self.categories.count_subcategories(category_id)
            products = self.categories.count_products(category_id)
            if subcategories or products:
                raise HasDependents(
                    f"Nie mozna usunac kategorii: ma {subcategories} podkategorii i {products} produktow. "
                    "Zamiast tego ja dezaktywuj"
                )

            self.categories.delete(category)

        logger.info(f"Category {category_id} deleted")

    def category_stats(self, category_id: int) -> Dict[str, Any]:
        category = self.get_category(category_id)
        stats = self.products.stats(ProductModel.category_id == category_id)
        return {"id": category.id, "name": category.name, "active": category.active, **stats}

    # =====================================================
    # PODKATEGORIE
    # =====================================================
    def list_subcategories(self, category_id: int | None = None, active: bool | None = None) -> List[SubcategoryModel]:
        return self.subcategories.list(category_id=category_id, active=active)

    def get_subcategory(self, subcategory_id: int) -> SubcategoryModel:
        subcategory = self.subcategories.get(subcategory_id)
        if not subcategory:
            raise NotFound(f"Podkategoria {subcategory_id} nie istnieje")
        return subcategory

    def get_subcategory_detail(self, subcategory_id: int) -> Tuple[SubcategoryModel, int]:
        subcategory = self.get_subcategory(subcategory_id)
        return subcategory, self.subcategories.count_products(subcategory_id)

    @db_retry()
    def create_subcategory(self, category_id: int, name: str, description: str | None = None) -> SubcategoryModel:
        name = _check_length(name, "Nazwa podkategorii", 2, 100)

        with transaction(self.db):
            category = self.categories.get(category_id)
            if not category:
                raise NotFound(f"Kategoria {category_id} nie istnieje")
            #aktywnosc rodzica sprawdzana tylko przy tworzeniu
            if not category.active:
                raise ParentInactive(f"Kategoria '{category.name}' jest nieaktywna")
            if self.subcategories.get_by_name(category_id, name):
                raise DuplicateName(f"Podkategoria '{name}' juz istnieje w tej kategorii")

            subcategory = self.subcategories.add(
                SubcategoryModel(
                    name=name,
                    description=description or None,
                    category_id=category_id,
                    active=True,
                )
            )

        logger.info(f"Subcategory {subcategory.id} '{name}' created in category {category_id}")
        return subcategory

    @db_retry()
    def update_subcategory(
        self,
        subcategory_id: int,
        name: str | None = None,
        description: str | None = None,
        active: bool | None = None,
    ) -> SubcategoryModel:
        with transaction(self.db):
            subcategory = self.get_subcategory(subcategory_id)

            if name is not None and name.strip() != subcategory.name:
                name = _check_length(name, "Nazwa podkategorii", 2, 100)
                if self.subcategories.get_by_name(subcategory.category_id, name):
                    raise DuplicateName(f"Podkategoria '{name}' juz istnieje w tej kategorii")
                subcategory.name = name

            if description is not None:
                subcategory.description = description

            if active is not None and active != subcategory.active:
                self._apply_subcategory_active(subcategory, active)

        logger.info(f"Subcategory {subcategory_id} updated")
        return subcategory

    @db_retry()
    def set_subcategory_active(self, subcategory_id: int, active: bool) -> Dict[str, Any]:
        with transaction(self.db):
            subcategory = self.get_subcategory(subcategory_id)
            return self._apply_subcategory_active(subcategory, active)

    @db_retry()
    def toggle_subcategory(self, subcategory_id: int) -> Dict[str, Any]:
        with transaction(self.db):
            subcategory = self.get_subcategory(subcategory_id)
            return self._apply_subcategory_active(subcategory, not subcategory.active)

    def _apply_subcategory_active(self, subcategory: SubcategoryModel, active: bool) -> Dict[str, Any]:
        subcategory.active = active
        self.db.flush()

        products_affected = 0
        if not active:
            products_affected = self.subcategories.deactivate_products(subcategory.id)
            self.db.expire_all()
            logger.info(f"Subcategory {subcategory.id} deactivated together with {products_affected} products")
        else:
            logger.info(f"Subcategory {subcategory.id} activated (no cascade)")

        return {
            "id": subcategory.id,
            "active": active,
            "subcategories_affected": 0,
            "products_affected": products_affected,
        }

    @db_retry()
    def delete_subcategory(self, subcategory_id: int) -> None:
        with transaction(self.db):
            subcategory = self.get_subcategory(subcategory_id)

            products = self.subcategories.count_products(subcategory_id)
            if products:
                raise HasDependents(
                    f"Nie mozna usunac podkategorii: ma {products} produktow. Zamiast tego ja dezaktywuj"
                )

            self.subcategories.delete(subcategory)

        logger.info(f"Subcategory {subcategory_id} deleted")

    def subcategory_stats(self, subcategory_id: int) -> Dict[str, Any]:
        subcategory = self.get_subcategory(subcategory_id)
        stats = self.products.stats(ProductModel.subcategory_id == subcategory_id)
        return {"id": subcategory.id, "name": subcategory.name, "active": subcategory.active, **stats}

    # =====================================================
    # PRODUKTY
    # =====================================================
    def list_products(
        self,
        category_id: int | None = None,
        subcategory_id: int | None = None,
        active: bool | None = None,
        in_stock: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> Dict[str, Any]:
        if page < 1 or limit < 1:
            raise ValidationError("Strona i limit musza byc wieksze niz 0")

        items, total = self.products.list(
            category_id=category_id,
            subcategory_id=subcategory_id,
            active=active,
            in_stock=in_stock,
            search=search,
            page=page,
            limit=limit,
        )

        return {
            "items": items,
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit),
        }

    def get_product(self, product_id: int) -> ProductModel:
        product = self.products.get(product_id)
        if not product:
            raise NotFound(f"Produkt {product_id} nie istnieje")
        return product

    def product_stats(self, product_id: int) -> Dict[str, Any]:
        product = self.get_product(product_id)
        stats = self.products.stats(ProductModel.id == product_id)
        return {"id": product.id, "name": product.name, "active": product.active, **stats}

    def _check_hierarchy(self, category_id: int, subcategory_id: int) -> Tuple[CategoryModel, SubcategoryModel]:
        category = self.categories.get(category_id)
        if not category:
            raise NotFound(f"Kategoria {category_id} nie istnieje")

        subcategory = self.subcategories.get(subcategory_id)
        if not subcategory:
            raise NotFound(f"Podkategoria {subcategory_id} nie istnieje")

        if not category.active:
            raise ParentInactive(f"Kategoria '{category.name}' jest nieaktywna")
        if not subcategory.active:
            raise ParentInactive(f"Podkategoria '{subcategory.name}' jest nieaktywna")

        if subcategory.category_id != category.id:
            raise HierarchyMismatch(
                f"Podkategoria '{subcategory.name}' nie nalezy do kategorii '{category.name}'"
            )

        return category, subcategory

    @db_retry()
    def create_product(
        self,
        category_id: int,
        subcategory_id: int,
        name: str,
        price: Any,
        stock: int = 0,
        description: str | None = None,
        image: str | None = None,
    ) -> ProductModel:
        name = _check_length(name, "Nazwa produktu", 3, 200)
        price = _to_price(price)
        stock = _to_stock(stock)
        if image is not None and not is_valid_image_ref(image):
            raise ValidationError("Zdjecie musi byc plikiem jpg, jpeg, png lub gif")

        with transaction(self.db):
            self._check_hierarchy(category_id, subcategory_id)

            product = self.products.add(
                ProductModel(
                    name=name,
                    description=description or None,
                    price=price,
                    stock=stock,
                    image=image,
                    category_id=category_id,
                    subcategory_id=subcategory_id,
                    active=True,
                )
            )

        logger.info(f"Product {product.id} '{name}' created (stock {stock}, price {price})")
        return product

    @db_retry()
    def update_product(
        self,
        product_id: int,
        name: str | None = None,
        description: str | None = None,
        price: Any = None,
        category_id: int | None = None,
        subcategory_id: int | None = None,
        active: bool | None = None,
    ) -> ProductModel:
        with transaction(self.db):
            product = self.get_product(product_id)

            if name is not None:
                product.name = _check_length(name, "Nazwa produktu", 3, 200)
            if description is not None:
                product.description = description
            if price is not None:
                product.price = _to_price(price)

            if category_id is not None or subcategory_id is not None:
                new_category_id = category_id if category_id is not None else product.category_id
                new_subcategory_id = subcategory_id if subcategory_id is not None else product.subcategory_id
                self._check_hierarchy(new_category_id, new_subcategory_id)
                product.category_id = new_category_id
                product.subcategory_id = new_subcategory_id

            if active is not None:
                product.active = active

        logger.info(f"Product {product_id} updated")
        return product

    @db_retry()
    def set_product_active(self, product_id: int, active: bool) -> Dict[str, Any]:
        with transaction(self.db):
            product = self.get_product(product_id)
            product.active = active

        logger.info(f"Product {product_id} {'activated' if active else 'deactivated'}")
        return {"id": product_id, "active": active, "subcategories_affected": 0, "products_affected": 0}

    def toggle_product(self, product_id: int) -> Dict[str, Any]:
        product = self.get_product(product_id)
        return self.set_product_active(product_id, not product.active)

    @db_retry()
    def set_product_image(self, product_id: int, image: str) -> ProductModel:
        if not is_valid_image_ref(image):
            raise ValidationError("Zdjecie musi byc plikiem jpg, jpeg, png lub gif")

        with transaction(self.db):
            product = self.get_product(product_id)
            previous = product.image
            product.image = image

        #stary plik kasujemy dopiero po commicie
        if previous and previous != image:
            self.storage.delete_file(previous)

        logger.info(f"Product {product_id} image set to {image}")
        return product

    @db_retry()
    def adjust_stock(self, product_id: int, operation: str, quantity: int) -> ProductModel:
        with transaction(self.db):
            if operation == "increase":
                product = self.inventory.increase(product_id, quantity)
            elif operation == "decrease":
                product = self.inventory.decrease(product_id, quantity)
            elif operation == "set":
                product = self.inventory.set_stock(product_id, quantity)
            else:
                raise ValidationError(f"Nieznana operacja na stanie '{operation}'")

        return product

    @db_retry()
    def delete_product(self, product_id: int) -> None:
        with transaction(self.db):
            product = self.get_product(product_id)

            order_lines = self.products.count_order_items(product_id)
            if order_lines:
                raise HasDependents(
                    f"Nie mozna usunac produktu: wystepuje w {order_lines} liniach zamowien. Zamiast tego go dezaktywuj"
                )

            removed = self.products.delete_cart_items(product_id)
            image = product.image
            self.products.delete(product)

        if removed:
            logger.info(f"Removed product {product_id} from {removed} carts")
        if image:
            self.storage.delete_file(image)

        logger.info(f"Product {product_id} deleted")
