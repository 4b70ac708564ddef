# storefront/api/routers/cart.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import Actor, require_user
from storefront.api.responses import ok
from storefront.data.database import get_db
from storefront.domain.schemas import (
    ApiResponse,
    CartClearedOut,
    CartLineIn,
    CartLineUpdate,
    CartOut,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("/", response_model=ApiResponse[CartOut])
def get_cart(actor: Actor = Depends(require_user), db: Session = Depends(get_db)):
    svc = get_service(db)
    return ok(svc.get_cart(actor.user_id))


@router.post("/lines", response_model=ApiResponse[CartOut], status_code=201)
def add_line(
    payload: CartLineIn,
    actor: Actor = Depends(require_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart = svc.add_line(actor.user_id, payload.product_id, payload.quantity)
    return ok(cart, "Product added to cart")


@router.patch("/lines/{item_id}", response_model=ApiResponse[CartOut])
def update_line(
    item_id: int,
    payload: CartLineUpdate,
    actor: Actor = Depends(require_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return ok(svc.update_quantity(actor.user_id, item_id, payload.quantity), "Cart updated")


@router.delete("/lines/{item_id}", response_model=ApiResponse[CartOut])
def remove_line(
    item_id: int,
    actor: Actor = Depends(require_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return ok(svc.remove_line(actor.user_id, item_id), "Product removed from cart")


@router.delete("/", response_model=ApiResponse[CartClearedOut])
def clear_cart(actor: Actor = Depends(require_user), db: Session = Depends(get_db)):
    svc = get_service(db)
    deleted = svc.clear(actor.user_id)
    return ok({"deleted": deleted}, "Cart cleared")
