# horizonfit/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from .. import schemas, security, models
from ..compliance_logger import compliance_logger
from ..config import get_settings
from ..database import get_db

import logging

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)

@router.post("/token", response_model=schemas.TokenResponse)
def login_for_access_token(db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    user = security.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    compliance_logger.record(
        db, models.AuditAction.LOGIN, "AUTHENTICATION", user=user,
        resource_type="user", resource_id=user.id,
        details=f"User {user.username} logged in successfully.",
    )
    db.commit()
    db.refresh(user)

    logger.info(f"User '{user.username}' successfully authenticated.")

    expire_minutes = get_settings().access_token_expire_minutes
    access_token = security.create_access_token(user)

    return {"access_token": access_token, "token_type": "bearer", "expires_in": expire_minutes * 60, "user": user}

@router.get("/users/me", response_model=schemas.UserResponse)
async def read_users_me(current_user: models.User = Depends(security.get_current_user)):
    """
    Get the current logged in user's details.
    """
    return current_user
