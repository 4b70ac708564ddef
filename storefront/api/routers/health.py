# storefront/api/routers/health.py
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.api.responses import ok
from storefront.domain.schemas import ApiResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=ApiResponse[dict])
def health(db: Session = Depends(get_db)):
    #SELECT 1 - pool i baza odpowiadaja
    db.execute(text("SELECT 1"))
    return ok({"status": "ok", "database": "ok"})
