# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import Actor, require_staff, require_user
from storefront.api.responses import ok
from storefront.data.database import get_db
from storefront.domain.schemas import (
    ApiResponse,
    BestSellerOut,
    OrderCreate,
    OrderLineUpdate,
    OrderOut,
    OrderStatusIn,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("/", response_model=ApiResponse[OrderOut], status_code=201)
def create_order(
    payload: OrderCreate,
    actor: Actor = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Tworzy zamówienie z koszyka uzytkownika.
    Stock zdejmowany, koszyk czyszczony - wszystko albo nic.
    """
    svc = get_service(db)
    order = svc.create_from_cart(
        actor.user_id,
        shipping_address=payload.shipping_address,
        phone=payload.phone,
        notes=payload.notes,
    )
    return ok(order, "Order created")


@router.get("/", response_model=ApiResponse[List[OrderOut]])
def list_my_orders(actor: Actor = Depends(require_user), db: Session = Depends(get_db)):
    svc = get_service(db)
    return ok(svc.list_orders(actor.user_id))


#statyczne sciezki przed /{order_id}
@router.get("/all", response_model=ApiResponse[List[OrderOut]], dependencies=[Depends(require_staff)])
def list_all_orders(status: str | None = Query(None), db: Session = Depends(get_db)):
    svc = get_service(db)
    return ok(svc.list_all_orders(status))


@router.get("/best-sellers", response_model=ApiResponse[List[BestSellerOut]])
def best_sellers(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    svc = get_service(db)
    return ok(svc.best_sellers(limit))


@router.get("/{order_id}", response_model=ApiResponse[OrderOut])
def get_order(
    order_id: int,
    actor: Actor = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Pobiera szczegóły zamówienia. Klient widzi tylko swoje.
    """
    svc = get_service(db)
    return ok(svc.get_order(order_id, None if actor.is_staff else actor.user_id))


@router.patch("/{order_id}/status", response_model=ApiResponse[OrderOut], dependencies=[Depends(require_staff)])
def change_status(order_id: int, payload: OrderStatusIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    order = svc.change_status(order_id, payload.status)
    return ok(order, f"Order status changed to {order.status}")


@router.post("/{order_id}/cancel", response_model=ApiResponse[OrderOut])
def cancel_order(
    order_id: int,
    actor: Actor = Depends(require_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    order = svc.cancel(order_id, None if actor.is_staff else actor.user_id)
    return ok(order, "Order cancelled")


@router.patch("/{order_id}/lines/{line_id}", response_model=ApiResponse[OrderOut],
              dependencies=[Depends(require_staff)])
def update_order_line(
    order_id: int,
    line_id: int,
    payload: OrderLineUpdate,
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    order = svc.update_line_quantity(order_id, line_id, payload.quantity)
    return ok(order, "Order line updated")


@router.delete("/{order_id}", response_model=ApiResponse, dependencies=[Depends(require_staff)])
def delete_order(order_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    svc.delete(order_id)
    return ok(message="Order deleted")
