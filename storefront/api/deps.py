# storefront/api/deps.py
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from storefront.domain.enums import UserRole
from storefront.services.storage_service import LocalImageStorage


@dataclass
class Actor:
    """Tozsamosc wywolujacego, przekazana przez gateway w naglowkach."""

    user_id: int | None
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.STAFF, UserRole.ADMIN)


def get_actor(
    x_user_id: int | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Actor:
    try:
        role = UserRole(x_user_role) if x_user_role else UserRole.CLIENT
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Nieznana rola '{x_user_role}'")
    return Actor(user_id=x_user_id, role=role)


def require_user(actor: Actor = Depends(get_actor)) -> Actor:
    #koszyk i zamowienia zawsze w kontekscie konkretnego uzytkownika
    if actor.user_id is None:
        raise HTTPException(status_code=401, detail="Wymagany naglowek X-User-Id")
    return actor


def require_staff(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_staff:
        raise HTTPException(status_code=403, detail="Wymagana rola staff lub admin")
    return actor


def get_storage() -> LocalImageStorage:
    return LocalImageStorage()
