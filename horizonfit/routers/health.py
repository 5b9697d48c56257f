# horizonfit/routers/health.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from .. import crud, schemas, security
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/health",
    tags=["Health Checks"],
    responses={404: {"description": "Not found"}},
)

@router.get("/consistency-check", response_model=schemas.ConsistencyReport, dependencies=[Depends(security.require_admin)])
def check_system_consistency(db: Session = Depends(get_db)) -> schemas.ConsistencyReport:
    """
    Reports zone-progress rows that break the progression invariants.
    Accessible only by admin users.
    """
    report = crud.run_consistency_checks(db=db)
    issue_count = sum(len(value) for value in report.values() if isinstance(value, list))
    logger.info(f"Consistency checks completed. Found {issue_count} issue(s).")
    return report
