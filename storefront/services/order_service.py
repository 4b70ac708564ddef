# storefront/services/order_service.py
from decimal import Decimal
from typing import List
from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.mixins import utcnow
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.enums import CANCELLABLE, ORDER_TRANSITIONS, STATUS_TIMESTAMPS, OrderStatus
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
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.inventory_service import InventoryService
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.

    Maszyna stanow:
        pending -> paid -> shipped -> delivered
        pending | paid -> cancelled
    Checkout, anulowanie i usuniecie to kazde jedna transakcja,
    stock zmieniany wylacznie przez InventoryService.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.users = UserRepo(db)
        self.inventory = InventoryService(db)

    @staticmethod
    def _validate_shipping(shipping_address: str, phone: str) -> None:
        if not shipping_address or not 10 <= len(shipping_address.strip()) <= 500:
            raise ValidationError("Adres dostawy musi miec od 10 do 500 znakow")
        if not phone or not phone.strip():
            raise ValidationError("Numer telefonu jest wymagany")
        if len(phone.strip()) > 20:
            raise ValidationError("Numer telefonu moze miec maksymalnie 20 znakow")

    @db_retry()
    def create_from_cart(
        self,
        user_id: int,
        shipping_address: str,
        phone: str,
        notes: str | None = None,
    ) -> OrderModel:
        """
        Use Case: Tworzenie zamówienia z koszyka.

        1. Blokuje produkty z koszyka (FOR UPDATE) i waliduje je ponownie
        2. Tworzy zamówienie pending + linie ze snapshotem ceny z koszyka
        3. Zdejmuje stock
        4. Czysci koszyk
        Blad w dowolnym kroku => rollback calosci.
        """
        self._validate_shipping(shipping_address, phone)

        with transaction(self.db):
            if not self.users.get_user(user_id):
                raise NotFound(f"Uzytkownik {user_id} nie istnieje")

            items = self.cart_repo.get_items(user_id)

            if not items:
                raise EmptyCart("Koszyk jest pusty")

            products = self.inventory.lock(i.product_id for i in items)

            #walidacja przy checkoucie, nie tylko przy dodawaniu
            for item in items:
                product = products.get(item.product_id)

                if product is None:
                    raise NotFound(f"Produkt {item.product_id} juz nie istnieje")

                if not product.active:
                    raise ProductInactive(f"Produkt '{product.name}' nie jest juz dostepny")

                if not self.inventory.has_stock(product, item.quantity):
                    raise InsufficientStock(
                        f"Za malo towaru '{product.name}'. Dostepne tylko {product.stock} szt."
                    )

            lines = [OrderItemModel.from_cart_item(i) for i in items]
            total = sum((line.subtotal for line in lines), Decimal("0.00"))

            order = OrderModel(
                user_id=user_id,
                status=OrderStatus.PENDING.value,
                total=total,
                shipping_address=shipping_address.strip(),
                phone=phone.strip(),
                notes=notes or None,
                items=lines,
            )
            created_order = self.repo.create_order(order)

            for item in items:
                self.inventory.decrease(item.product_id, item.quantity)

            self.cart_repo.clear(user_id)

        logger.info(
            f"Order {created_order.id} created for user {user_id}: "
            f"{len(lines)} lines, total {total}"
        )
        return created_order

    def get_order(self, order_id: int, user_id: int | None = None) -> OrderModel:
        """
        Use Case: Pobranie zamówienia (Query).
        user_id=None => bez sprawdzania wlasciciela (staff/admin).
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFound(f"Zamówienie {order_id} nie istnieje")

        if user_id is not None and order.user_id != user_id:
            raise Forbidden("Brak dostępu do zamówienia")

        return order

    def list_orders(self, user_id: int) -> List[OrderModel]:
        return self.repo.list_by_user(user_id)

    def list_all_orders(self, status: str | None = None) -> List[OrderModel]:
        if status is not None:
            status = self._parse_status(status).value
        return self.repo.list_all(status)

    def best_sellers(self, limit: int = 10) -> List[dict]:
        if limit < 1:
            raise ValidationError("Limit musi byc wiekszy niz 0")
        return self.repo.best_sellers(limit=limit, exclude_status=OrderStatus.CANCELLED.value)

    def _get_for_update(self, order_id: int, user_id: int | None = None) -> OrderModel:
        order = self.repo.get_order_for_update(order_id)

        if not order:
            raise NotFound(f"Zamówienie {order_id} nie istnieje")

        if user_id is not None and order.user_id != user_id:
            raise Forbidden("Brak dostępu do zamówienia")

        return order

    @staticmethod
    def _parse_status(value: str) -> OrderStatus:
        try:
            return OrderStatus(value)
        except ValueError:
            raise InvalidState(f"Nieznany status zamowienia '{value}'")

    @staticmethod
    def _stamp(order: OrderModel, status: OrderStatus) -> None:
        #data ustawiana raz, nie nadpisujemy
        column = STATUS_TIMESTAMPS.get(status)
        if column and getattr(order, column) is None:
            setattr(order, column, utcnow())

    @db_retry()
    def change_status(self, order_id: int, new_status: str) -> OrderModel:
        target = self._parse_status(new_status)

        with transaction(self.db):
            order = self._get_for_update(order_id)
            current = OrderStatus(order.status)

            if target not in ORDER_TRANSITIONS[current]:
                logger.warning(f"Order {order_id}: rejected transition {current.value} -> {target.value}")
                raise InvalidState(
                    f"Nie mozna zmienic statusu z '{current.value}' na '{target.value}'"
                )

            if target is OrderStatus.CANCELLED:
                self._cancel(order)
            else:
                order.status = target.value
                self._stamp(order, target)

        logger.info(f"Order {order_id}: {current.value} -> {target.value}")
        return order

    @db_retry()
    def cancel(self, order_id: int, user_id: int | None = None) -> OrderModel:
        with transaction(self.db):
            order = self._get_for_update(order_id, user_id)
            current = OrderStatus(order.status)

            if current not in CANCELLABLE:
                logger.warning(f"Order {order_id}: cancel rejected in status {current.value}")
                raise NotCancellable(f"Zamówienia w statusie '{current.value}' nie mozna anulowac")

            self._cancel(order)

        logger.info(f"Order {order_id} cancelled, stock restored")
        return order

    def _restore_stock(self, order: OrderModel) -> None:
        self.inventory.lock(line.product_id for line in order.items)
        for line in order.items:
            self.inventory.increase(line.product_id, line.quantity)

    def _cancel(self, order: OrderModel) -> None:
        self._restore_stock(order)
        order.status = OrderStatus.CANCELLED.value
        self._stamp(order, OrderStatus.CANCELLED)

    @db_retry()
    def delete(self, order_id: int) -> None:
        with transaction(self.db):
            order = self._get_for_update(order_id)
            status = OrderStatus(order.status)

            #po oplaceniu tylko anulowanie
            if status in (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
                raise DeleteNotAllowed(
                    f"Zamówienia w statusie '{status.value}' nie mozna usunac, mozna je tylko anulowac"
                )

            #pending ma jeszcze zdjety stock, oddajemy go przed usunieciem
            if status is OrderStatus.PENDING:
                self._restore_stock(order)

            self.repo.delete(order)

        logger.info(f"Order {order_id} deleted (was {status.value})")

    @db_retry()
    def update_line_quantity(self, order_id: int, line_id: int, quantity: int) -> OrderModel:
        if quantity is None or quantity <= 0:
            raise ValidationError("Ilosc musi być wieksza niz 0")

        with transaction(self.db):
            order = self._get_for_update(order_id)

            #linie sa niezmienne po wyjsciu z pending
            if order.status != OrderStatus.PENDING.value:
                raise InvalidState(f"Linii zamowienia nie mozna zmieniac w statusie '{order.status}'")

            line = next((l for l in order.items if l.id == line_id), None)
            if line is None:
                raise NotFound(f"Linia {line_id} nie nalezy do zamowienia {order_id}")

            diff = quantity - line.quantity
            self.inventory.lock([line.product_id])
            if diff > 0:
                self.inventory.decrease(line.product_id, diff)
            elif diff < 0:
                self.inventory.increase(line.product_id, -diff)

            line.set_quantity(quantity)
            order.total = sum((l.subtotal for l in order.items), Decimal("0.00"))

        logger.info(f"Order {order_id} line {line_id} quantity set to {quantity}, total {order.total}")
        return order
