# storefront/api/routers/products.py
from decimal import Decimal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from storefront.api.deps import get_storage, require_staff
from storefront.api.responses import ok
from storefront.data.database import get_db
from storefront.domain.schemas import (
    ApiResponse,
    CatalogStatsOut,
    ProductOut,
    ProductPage,
    ProductUpdate,
    StatusChangeOut,
    StatusIn,
    StockIn,
)
from storefront.services.catalog_service import CatalogService
from storefront.services.storage_service import LocalImageStorage
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session, storage: LocalImageStorage | None = None):
    return CatalogService(db, storage=storage)


@router.get("/", response_model=ApiResponse[ProductPage])
def list_products(
    category_id: int | None = Query(None, gt=0),
    subcategory_id: int | None = Query(None, gt=0),
    active: bool | None = Query(None),
    in_stock: bool | None = Query(None),
    search: str | None = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=100),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return ok(svc.list_products(
        category_id=category_id,
        subcategory_id=subcategory_id,
        active=active,
        in_stock=in_stock,
        search=search,
        page=page,
        limit=limit,
    ))


@router.post("/", response_model=ApiResponse[ProductOut], status_code=201,
             dependencies=[Depends(require_staff)])
def create_product(
    name: str = Form(...),
    price: Decimal = Form(...),
    category_id: int = Form(...),
    subcategory_id: int = Form(...),
    stock: int = Form(0),
    description: str | None = Form(None),
    image: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    storage: LocalImageStorage = Depends(get_storage),
):
    """
    Tworzy produkt (multipart/form-data).
    Zdjecie zapisywane przed insertem, przy bledzie plik jest kasowany.
    """
    svc = get_service(db, storage)
    ref = storage.store_file(image) if image is not None and image.filename else None

    try:
        product = svc.create_product(
            category_id=category_id,
            subcategory_id=subcategory_id,
            name=name,
            price=price,
            stock=stock,
            description=description,
            image=ref,
        )
    except Exception:
        if ref:
            logger.warning(f"Product creation failed, removing uploaded image {ref}")
            storage.delete_file(ref)
        raise

    return ok(product, "Product created")


@router.get("/{product_id}", response_model=ApiResponse[ProductOut])
def get_product(product_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    return ok(svc.get_product(product_id))


@router.get("/{product_id}/stats", response_model=ApiResponse[CatalogStatsOut])
def product_stats(product_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    return ok(svc.product_stats(product_id))


@router.put("/{product_id}", response_model=ApiResponse[ProductOut], dependencies=[Depends(require_staff)])
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    svc = get_service(db)
    product = svc.update_product(product_id, **payload.model_dump(exclude_unset=True))
    return ok(product, "Product updated")


@router.patch("/{product_id}/status", response_model=ApiResponse[StatusChangeOut],
              dependencies=[Depends(require_staff)])
def set_product_status(product_id: int, payload: StatusIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    result = svc.set_product_active(product_id, payload.active)
    return ok(result, f"Product {'activated' if payload.active else 'deactivated'}")


@router.patch("/{product_id}/toggle", response_model=ApiResponse[StatusChangeOut],
              dependencies=[Depends(require_staff)])
def toggle_product(product_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    result = svc.toggle_product(product_id)
    return ok(result, f"Product {'activated' if result['active'] else 'deactivated'}")


@router.patch("/{product_id}/stock", response_model=ApiResponse[ProductOut], dependencies=[Depends(require_staff)])
def adjust_stock(product_id: int, payload: StockIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    product = svc.adjust_stock(product_id, payload.operation, payload.quantity)
    return ok(product, "Stock updated")


@router.put("/{product_id}/image", response_model=ApiResponse[ProductOut], dependencies=[Depends(require_staff)])
def replace_image(
    product_id: int,
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: LocalImageStorage = Depends(get_storage),
):
    svc = get_service(db, storage)
    #404 zanim cokolwiek trafi na dysk
    svc.get_product(product_id)
    ref = storage.store_file(image)

    try:
        product = svc.set_product_image(product_id, ref)
    except Exception:
        storage.delete_file(ref)
        raise

    return ok(product, "Image updated")


@router.delete("/{product_id}", response_model=ApiResponse, dependencies=[Depends(require_staff)])
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    storage: LocalImageStorage = Depends(get_storage),
):
    svc = get_service(db, storage)
    svc.delete_product(product_id)
    return ok(message="Product deleted")
