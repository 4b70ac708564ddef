# storefront/services/inventory_service.py
from typing import Dict, Iterable

from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import InsufficientStock, NotFound, ValidationError
from storefront.repos.catalog_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Straznik stanu magazynowego.
    -stock nigdy ponizej zera
    -kazda zmiana to warunkowy UPDATE na biezacej wartosci w bazie (brak lost update)
    -nie robi commita, dziala w transakcji wywolujacego
    """

    def __init__(self, db: Session):
        self.db = db
        self.products = ProductRepo(db)

    @staticmethod
    def has_stock(product: ProductModel, quantity: int = 1) -> bool:
        return product.stock >= quantity

    def lock(self, product_ids: Iterable[int]) -> Dict[int, ProductModel]:
        return self.products.get_for_update(product_ids)

    def _get_product(self, product_id: int) -> ProductModel:
        product = self.products.get(product_id)
        if not product:
            raise NotFound(f"Produkt {product_id} nie istnieje")
        return product

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity is None or quantity <= 0:
            raise ValidationError("Ilosc musi być wieksza niz 0")

    def increase(self, product_id: int, quantity: int) -> ProductModel:
        self._check_quantity(quantity)
        product = self._get_product(product_id)

        self.products.increase_stock(product_id, quantity)
        self.db.refresh(product)

        logger.info(f"Stock of product {product_id} increased by {quantity}, now {product.stock}")
        return product

    def decrease(self, product_id: int, quantity: int) -> ProductModel:
        self._check_quantity(quantity)
        product = self._get_product(product_id)

        rowcount = self.products.decrease_stock(product_id, quantity)
        self.db.refresh(product)

        if rowcount == 0:
            logger.warning(
                f"Stock decrease rejected for product {product_id}: "
                f"requested {quantity}, available {product.stock}"
            )
            raise InsufficientStock(
                f"Za malo towaru '{product.name}'. Dostepne tylko {product.stock} szt."
            )

        logger.info(f"Stock of product {product_id} decreased by {quantity}, now {product.stock}")
        return product

    def set_stock(self, product_id: int, value: int) -> ProductModel:
        if value is None or value < 0:
            raise ValidationError("Stan magazynowy nie moze byc ujemny")
        product = self._get_product(product_id)

        self.products.set_stock(product_id, value)
        self.db.refresh(product)

        logger.info(f"Stock of product {product_id} set to {value}")
        return product
