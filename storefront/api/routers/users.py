from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.data.database import get_db
from storefront.services.user_service import UserService
from storefront.api.responses import ok
from storefront.domain.schemas import ApiResponse, UserCreate, UserRead

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=ApiResponse[UserRead], status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    return ok(service.create_user(payload))

@router.get("/{user_id}", response_model=ApiResponse[UserRead])
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    return ok(service.get_user(user_id))
