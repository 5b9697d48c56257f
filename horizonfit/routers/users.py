# horizonfit/routers/users.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from .. import crud, schemas, security, models
from ..compliance_logger import compliance_logger
from ..database import get_db

router = APIRouter(
    tags=["Users"],
    dependencies=[Depends(security.require_admin)],
    responses={404: {"description": "Not found"}},
)

@router.post("/users", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def create_new_user(
    user: schemas.UserCreate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin)
):
    """Create a doctor, admin or patient login. Patients are enrolled in zone 1."""
    if crud.get_user_by_identifier(db, user.username) or crud.get_user_by_identifier(db, user.email):
        raise HTTPException(status_code=400, detail="Username or email already registered")

    new_user = crud.create_user(db=db, user=user, password_hash=security.get_password_hash(user.password))
    compliance_logger.record(
        db, models.AuditAction.CREATE, "USER", user=current_admin,
        resource_type="user", resource_id=new_user.id,
        details=f"Created new user: {new_user.username} with role {new_user.role.value}",
        new_values=user.model_dump(mode="json", exclude={"password"}),
    )
    db.commit()
    db.refresh(new_user)
    return new_user

@router.get("/users", response_model=List[schemas.UserResponse])
def read_all_users(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.get_users(db, skip=skip, limit=limit)

@router.get("/users/{user_id}", response_model=schemas.UserResponse)
def read_user(user_id: int, db: Session = Depends(get_db)):
    db_user = crud.get_user(db, user_id=user_id)
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")
    return db_user
