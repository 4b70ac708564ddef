from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any
from sqlalchemy.orm import Session
from storefront.data.database import transaction
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import Forbidden, InsufficientStock, NotFound, ProductInactive, ValidationError
from storefront.repos.cart_repo import CartRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.inventory_service import InventoryService
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


class CartService:
    """
    Koszyk uzytkownika = zbior linii (produkt, ilosc, cena z chwili dodania).
    commands (add, update, remove, clear) modyfikuja stan
    query (get, total) tylko odczyt
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.users = UserRepo(db)
        self.inventory = InventoryService(db)

    #query - odczyt
    def total(self, user_id: int) -> Decimal:
        #pelna precyzja, zaokraglenie tylko do wyswietlenia
        items = self.repo.get_items(user_id)
        return sum((i.unit_price * i.quantity for i in items), Decimal("0.00"))

    def get_cart(self, user_id: int) -> Dict[str, Any]:
        items = self.repo.get_items(user_id)
        total = sum((i.unit_price * i.quantity for i in items), Decimal("0.00"))

        #dict przeksztalcany w jsona
        return {
            "user_id": user_id,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "product_name": i.product.name,
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                    "subtotal": i.subtotal,
                }
                for i in items
            ],
            "item_count": sum(i.quantity for i in items),
            "total": total.quantize(CENT, rounding=ROUND_HALF_UP),
        }

    #commands
    @db_retry()
    def add_line(self, user_id: int, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        # Walidacje
        if quantity is None or quantity <= 0:
            raise ValidationError("Ilosc musi być wieksza niz 0")

        with transaction(self.db):
            if not self.users.get_user(user_id):
                raise NotFound(f"Uzytkownik {user_id} nie istnieje")

            #blokada wiersza produktu => dodania tego samego produktu ida po kolei
            product = self.inventory.lock([product_id]).get(product_id)

            if not product:
                raise NotFound(f"Produkt {product_id} nie istnieje")

            if not product.active:
                raise ProductInactive(f"Produkt '{product.name}' jest nieaktywny i nie moze trafic do koszyka")

            # Sprawdz czy produkt juz jest w koszyku
            existing_item = self.repo.get_item_by_product(user_id, product_id)
            requested = quantity + (existing_item.quantity if existing_item else 0)

            #laczna ilosc musi sie zmiescic w stanie magazynowym
            if not self.inventory.has_stock(product, requested):
                raise InsufficientStock(
                    f"Za malo towaru. Dostepne tylko {product.stock} szt. produktu '{product.name}'"
                )

            if existing_item:
                logger.info(
                    f"Produkt {product_id} jest juz w koszyku uzytkownika {user_id}, zwiekszam ilosc "
                    f"z {existing_item.quantity} do {requested}"
                )
                #snapshot ceny zostaje z pierwszego dodania
                existing_item.quantity = requested
            else:
                logger.info(f"Dodaje produkt {product_id} do koszyka uzytkownika {user_id}")
                self.repo.add_item(
                    CartItemModel(
                        user_id=user_id,
                        product_id=product_id,
                        quantity=quantity,
                        unit_price=product.price,
                    )
                )

        return self.get_cart(user_id)

    def _get_own_item(self, user_id: int, item_id: int) -> CartItemModel:
        item = self.repo.get_item(item_id)

        if not item:
            raise NotFound(f"Linia koszyka {item_id} nie istnieje")

        if item.user_id != user_id:
            raise Forbidden("Brak dostepu do koszyka")

        return item

    @db_retry()
    def update_quantity(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity is None or quantity <= 0:
            raise ValidationError("Ilosc musi być wieksza niz 0")

        with transaction(self.db):
            item = self._get_own_item(user_id, item_id)
            product = self.inventory.products.get(item.product_id)

            if not product:
                raise NotFound(f"Produkt {item.product_id} nie istnieje")

            #walidacja wzgledem biezacego stanu, nie snapshotu
            if not self.inventory.has_stock(product, quantity):
                raise InsufficientStock(
                    f"Za malo towaru. Dostepne tylko {product.stock} szt. produktu '{product.name}'"
                )

            logger.info(f"Linia koszyka {item_id}: ilosc {item.quantity} -> {quantity}")
            item.quantity = quantity

        return self.get_cart(user_id)

    @db_retry()
    def remove_line(self, user_id: int, item_id: int) -> Dict[str, Any]:
        with transaction(self.db):
            item = self._get_own_item(user_id, item_id)
            self.repo.delete_item(item)

        logger.info(f"Usunieto linie {item_id} z koszyka uzytkownika {user_id}")
        return self.get_cart(user_id)

    @db_retry()
    def clear(self, user_id: int) -> int:
        with transaction(self.db):
            deleted = self.repo.clear(user_id)

        logger.info(f"Wyczyszczono koszyk uzytkownika {user_id} ({deleted} linii)")
        return deleted
