import logging
from contextlib import contextmanager

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scidatahub.services.errors import WorkflowError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(db: Session, action: str):
    """Map workflow errors to 4xx and store failures to a logged 500."""
    try:
        yield
    except WorkflowError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('%s failed', action)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Internal server error',
        ) from exc
