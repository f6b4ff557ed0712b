"""
Authentication API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy.orm import Session

from cowork.core.config import settings
from cowork.core.database import get_db
from cowork.core.security import create_user_token, get_current_user
from cowork.schemas import Token, LoginRequest, UserResponse
from cowork.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=Token)
async def login(
    login_data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """Login and get access token"""
    user = UserService(db).authenticate(login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled"
        )

    db.commit()
    access_token = create_user_token(user)

    # Also set as HTTP-only cookie for browser clients
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=settings.is_production
    )
    return Token(access_token=access_token)


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie"""
    response.delete_cookie(key="access_token")
    return {"success": True, "message": "Successfully logged out"}


@router.get("/me", response_model=UserResponse)
async def get_me(current_user=Depends(get_current_user)):
    """Get current user info"""
    return current_user
