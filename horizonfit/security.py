# horizonfit/security.py - password hashing, JWT bearer tokens and role guards
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from passlib.context import CryptContext
import logging
from .config import get_settings
from .database import get_db
from . import models, crud


security_logger = logging.getLogger("horizonfit.security")

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=4,
    argon2__memory_cost=65536,
    argon2__parallelism=1,
)

# Patients, doctors and admins all sign in through the same form endpoint
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/token")

TOKEN_TYPE = "access"


# ==================== PASSWORDS ====================

def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unknown hash formats are a non-match
        return False

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def authenticate_user(db: Session, identifier: str, password: str) -> Optional[models.User]:
    """Username or email plus password. None on any mismatch."""
    user = crud.get_user_by_identifier(db, identifier)
    if user is None or not verify_password(password, user.password_hash):
        security_logger.warning(f"Failed login attempt for '{identifier}'")
        return None
    return user


# ==================== TOKENS ====================

def create_access_token(user: models.User, expires_delta: Optional[timedelta] = None) -> str:
    """Signed token naming the user and role; the role is re-read from the database on use."""
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
        "type": TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)

def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired access token, else None."""
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if claims.get("type") != TOKEN_TYPE:
        return None
    return claims


# ==================== DEPENDENCIES ====================

async def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> models.User:
    """Resolve the bearer token to an active user."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    claims = decode_access_token(token)
    if claims is None or claims.get("user_id") is None:
        security_logger.info(f"Rejected token on {request.url.path}")
        raise unauthorized

    user = crud.get_user(db, user_id=claims["user_id"])
    if user is None:
        raise unauthorized
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user

def require_role(*allowed_roles: models.UserRole):
    """Dependency factory: the current user must hold one of `allowed_roles`."""
    names = ", ".join(role.value for role in allowed_roles)

    def role_dependency(current_user: models.User = Depends(get_current_user)) -> models.User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {names}"
            )
        return current_user

    return role_dependency

require_admin = require_role(models.UserRole.admin)
# Admins can do everything a doctor can
require_doctor = require_role(models.UserRole.admin, models.UserRole.doctor)
require_patient = require_role(models.UserRole.patient)

def get_current_patient(
    current_user: models.User = Depends(require_patient),
    db: Session = Depends(get_db)
) -> models.Patient:
    """The Patient enrolment behind the authenticated patient account."""
    patient = crud.get_patient_by_user_id(db, current_user.id)
    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient record not found for this account"
        )
    return patient
