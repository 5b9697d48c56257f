# horizonfit/routers/zone_content.py - doctor-curated videos and DIY task templates
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import crud, schemas, security, models
from ..database import get_db

router = APIRouter(
    prefix="/doctor",
    tags=["Zone Content"],
    dependencies=[Depends(security.require_doctor)],
    responses={404: {"description": "Not found"}},
)


# ==================== ZONE VIDEOS ====================

@router.get("/videos", response_model=List[schemas.ZoneVideoResponse])
def read_zone_videos(
    zone_number: Optional[int] = Query(None, ge=1),
    include_inactive: bool = False,
    db: Session = Depends(get_db)
):
    return crud.list_zone_videos(db, zone_number=zone_number, active_only=not include_inactive)

@router.post("/videos", response_model=schemas.ZoneVideoResponse, status_code=status.HTTP_201_CREATED)
def create_zone_video(
    video: schemas.ZoneVideoCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    return crud.create_zone_video(db, video, actor=current_user)

@router.put("/videos/{video_id}", response_model=schemas.ZoneVideoResponse)
def update_zone_video(
    video_id: int,
    video_update: schemas.ZoneVideoUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    return crud.update_zone_video(db, video_id, video_update, actor=current_user)

@router.delete("/videos/{video_id}", response_model=schemas.ZoneVideoResponse)
def delete_zone_video(
    video_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    """Soft delete: the video is deactivated, watch history keeps pointing at it."""
    return crud.deactivate_zone_video(db, video_id, actor=current_user)


# ==================== DIY TASK TEMPLATES ====================

@router.get("/tasks", response_model=List[schemas.DIYTaskTemplateResponse])
def read_diy_tasks(
    zone_number: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db)
):
    return crud.list_diy_tasks(db, zone_number=zone_number)

@router.post("/tasks", response_model=schemas.DIYTaskTemplateResponse, status_code=status.HTTP_201_CREATED)
def create_diy_task(
    task: schemas.DIYTaskTemplateCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    return crud.create_diy_task(db, task, actor=current_user)

@router.put("/tasks/{task_id}", response_model=schemas.DIYTaskTemplateResponse)
def update_diy_task(
    task_id: int,
    task_update: schemas.DIYTaskTemplateUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    return crud.update_diy_task(db, task_id, task_update, actor=current_user)

@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_diy_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    if not crud.delete_diy_task(db, task_id, actor=current_user):
        raise HTTPException(status_code=404, detail="Task not found")
    return None
