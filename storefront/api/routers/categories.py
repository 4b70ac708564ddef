# storefront/api/routers/categories.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import require_staff
from storefront.api.responses import ok
from storefront.data.database import get_db
from storefront.domain.schemas import (
    ApiResponse,
    CatalogStatsOut,
    CategoryCreate,
    CategoryDetailOut,
    CategoryOut,
    CategoryUpdate,
    CategoryWithSubcategoriesOut,
    StatusChangeOut,
    StatusIn,
)
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/categories", tags=["categories"])


def get_service(db: Session):
    return CatalogService(db)


@router.get("/", response_model=ApiResponse[List[CategoryWithSubcategoriesOut]])
def list_categories(
    active: bool | None = Query(None),
    include_subcategories: bool = Query(False),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    categories = svc.list_categories(active=active, with_subcategories=include_subcategories)
    if not include_subcategories:
        #bez lazy loadu podkategorii przy serializacji
        categories = [CategoryOut.model_validate(c) for c in categories]
    return ok(categories)


@router.post("/", response_model=ApiResponse[CategoryWithSubcategoriesOut], status_code=201,
             dependencies=[Depends(require_staff)])
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    svc = get_service(db)
    category = svc.create_category(payload.name, payload.description)
    return ok(category, "Category created")


@router.get("/{category_id}", response_model=ApiResponse[CategoryDetailOut])
def get_category(category_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    category, total_products = svc.get_category_detail(category_id)
    data = CategoryWithSubcategoriesOut.model_validate(category).model_dump()
    return ok({**data, "total_products": total_products})


@router.put("/{category_id}", response_model=ApiResponse[CategoryWithSubcategoriesOut],
            dependencies=[Depends(require_staff)])
def update_category(category_id: int, payload: CategoryUpdate, db: Session = Depends(get_db)):
    svc = get_service(db)
    category = svc.update_category(
        category_id,
        name=payload.name,
        description=payload.description,
        active=payload.active,
    )
    return ok(category, "Category updated")


@router.patch("/{category_id}/status", response_model=ApiResponse[StatusChangeOut],
              dependencies=[Depends(require_staff)])
def set_category_status(category_id: int, payload: StatusIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    result = svc.set_category_active(category_id, payload.active)
    return ok(result, f"Category {'activated' if payload.active else 'deactivated'}")


@router.patch("/{category_id}/toggle", response_model=ApiResponse[StatusChangeOut],
              dependencies=[Depends(require_staff)])
def toggle_category(category_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    result = svc.toggle_category(category_id)
    return ok(result, f"Category {'activated' if result['active'] else 'deactivated'}")


@router.delete("/{category_id}", response_model=ApiResponse, dependencies=[Depends(require_staff)])
def delete_category(category_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    svc.delete_category(category_id)
    return ok(message="Category deleted")


@router.get("/{category_id}/stats", response_model=ApiResponse[CatalogStatsOut])
def category_stats(category_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    return ok(svc.category_stats(category_id))
