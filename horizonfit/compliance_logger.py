import logging
from datetime import datetime, timezone
from typing import Optional, Any, Dict

from sqlalchemy.orm import Session

from horizonfit import models


class ComplianceLogger:
	"""Audit trail writer. Rows join the caller's transaction so they commit or roll back with it."""

	def __init__(self, institution_id: str = 'HORIZONFIT-NORMAL-PLAN'):
		self.institution_id = institution_id
		self.logger = logging.getLogger('horizonfit.audit')

	def record(
		self,
		db: Session,
		action: models.AuditAction,
		category: str,
		user: Optional[models.User] = None,
		details: Optional[str] = None,
		severity: str = 'INFO',
		resource_type: Optional[str] = None,
		resource_id: Optional[int] = None,
		new_values: Optional[Dict[str, Any]] = None,
	) -> models.AuditLog:
		"""Adds an AuditLog row to the session. Does NOT commit."""
		db_log = models.AuditLog(
			user_id=user.id if user else None,
			username=user.username if user else 'System',
			action=action,
			category=category or 'GENERAL',
			severity=severity or 'INFO',
			resource_type=resource_type,
			resource_id=resource_id,
			details=details,
			new_values=new_values,
			timestamp=datetime.now(timezone.utc),
		)
		db.add(db_log)
		self.logger.info(
			"audit %s/%s resource=%s:%s by=%s [%s]",
			action.value, category, resource_type, resource_id, db_log.username, self.institution_id,
		)
		return db_log


# Singleton instance for global import
compliance_logger = ComplianceLogger()
