"""Authentication API router."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from farmdirect.auth import get_current_user
from farmdirect.database import get_db
from farmdirect.dependencies import get_user_service
from farmdirect.models import User
from farmdirect.schemas import LoginRequest, RegisterRequest
from farmdirect.services.user_service import UserService, serialize_user

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service)
):
    """Register a buyer or farmer and return a token for the new account."""
    user, token = user_service.register(db, request)
    return {"success": True, "token": token, "user": serialize_user(user)}


@router.post("/login")
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service)
):
    user, token = user_service.login(db, request)
    return {"success": True, "token": token, "user": serialize_user(user)}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """Resolve the user behind the bearer token."""
    return {"success": True, "user": serialize_user(user)}
