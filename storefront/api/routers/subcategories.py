# storefront/api/routers/subcategories.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import require_staff
from storefront.api.responses import ok
from storefront.data.database import get_db
from storefront.domain.schemas import (
    ApiResponse,
    CatalogStatsOut,
    CategoryOut,
    StatusChangeOut,
    StatusIn,
    SubcategoryCreate,
    SubcategoryDetailOut,
    SubcategoryOut,
    SubcategoryUpdate,
)
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/subcategories", tags=["subcategories"])


def get_service(db: Session):
    return CatalogService(db)


@router.get("/", response_model=ApiResponse[List[SubcategoryOut]])
def list_subcategories(
    category_id: int | None = Query(None, gt=0),
    active: bool | None = Query(None),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return ok(svc.list_subcategories(category_id=category_id, active=active))


@router.post("/", response_model=ApiResponse[SubcategoryOut], status_code=201,
             dependencies=[Depends(require_staff)])
def create_subcategory(payload: SubcategoryCreate, db: Session = Depends(get_db)):
    svc = get_service(db)
    subcategory = svc.create_subcategory(payload.category_id, payload.name, payload.description)
    return ok(subcategory, "Subcategory created")


@router.get("/{subcategory_id}", response_model=ApiResponse[SubcategoryDetailOut])
def get_subcategory(subcategory_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    subcategory, total_products = svc.get_subcategory_detail(subcategory_id)
    data = SubcategoryOut.model_validate(subcategory).model_dump()
    return ok({
        **data,
        "category": CategoryOut.model_validate(subcategory.category),
        "total_products": total_products,
    })


@router.put("/{subcategory_id}", response_model=ApiResponse[SubcategoryOut],
            dependencies=[Depends(require_staff)])
def update_subcategory(subcategory_id: int, payload: SubcategoryUpdate, db: Session = Depends(get_db)):
    svc = get_service(db)
    subcategory = svc.update_subcategory(
        subcategory_id,
        name=payload.name,
        description=payload.description,
        active=payload.active,
    )
    return ok(subcategory, "Subcategory updated")


@router.patch("/{subcategory_id}/status", response_model=ApiResponse[StatusChangeOut],
              dependencies=[Depends(require_staff)])
def set_subcategory_status(subcategory_id: int, payload: StatusIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    result = svc.set_subcategory_active(subcategory_id, payload.active)
    return ok(result, f"Subcategory {'activated' if payload.active else 'deactivated'}")


@router.patch("/{subcategory_id}/toggle", response_model=ApiResponse[StatusChangeOut],
              dependencies=[Depends(require_staff)])
def toggle_subcategory(subcategory_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    result = svc.toggle_subcategory(subcategory_id)
    return ok(result, f"Subcategory {'activated' if result['active'] else 'deactivated'}")


@router.delete("/{subcategory_id}", response_model=ApiResponse, dependencies=[Depends(require_staff)])
def delete_subcategory(subcategory_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    svc.delete_subcategory(subcategory_id)
    return ok(message="Subcategory deleted")


@router.get("/{subcategory_id}/stats", response_model=ApiResponse[CatalogStatsOut])
def subcategory_stats(subcategory_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    return ok(svc.subcategory_stats(subcategory_id))
