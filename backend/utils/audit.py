import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from models.log import Log

logger = logging.getLogger(__name__)


def write_log(db: Session, *, action, resource, status="SUCCESS", ip=None, meta=None):
    if not settings.AUDIT_LOG_ENABLED:
        return
    entry = Log(action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        # Audit failures are logged, never raised to the caller
        db.rollback()
        logger.exception("Failed to write audit log %s/%s: %s", resource, action, e)
