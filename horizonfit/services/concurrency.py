# horizonfit/services/concurrency.py
from typing import Callable, TypeVar

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..exceptions import ConflictError, PersistenceError

logger = structlog.get_logger(__name__)

CONFLICT_RETRY_ATTEMPTS = 3

T = TypeVar("T")


def run_in_transaction(db: Session, operation: Callable[[Session], T], label: str) -> T:
    """
    Run `operation(db)` and commit it as one unit.

    A version mismatch (StaleDataError) or a lost get-or-create race
    (IntegrityError) rolls back and re-runs the whole operation, so every
    read inside it is repeated against fresh rows. Other database failures
    roll back and surface as PersistenceError. Domain errors roll back and
    propagate unchanged.
    """
    for attempt in range(1, CONFLICT_RETRY_ATTEMPTS + 1):
        try:
            result = operation(db)
            db.commit()
            return result
        except (StaleDataError, IntegrityError) as exc:
            db.rollback()
            logger.warning(
                "progress_conflict_retry",
                operation=label,
                attempt=attempt,
                error=type(exc).__name__,
            )
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("persistence_failure", operation=label, error=str(exc))
            raise PersistenceError(f"A database error occurred during {label}.") from exc
        except Exception:
            db.rollback()
            raise

    raise ConflictError(
        f"{label} kept conflicting with concurrent updates after {CONFLICT_RETRY_ATTEMPTS} attempts."
    )
