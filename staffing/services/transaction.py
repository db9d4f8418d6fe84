from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from staffing.extensions import db
from staffing.services.errors import ConflictError, EngineError, InternalError


@contextmanager
def atomic(entity_id=None):
    """Run a block as one transaction: commit on success, roll back on any failure.

    Stale versioned rows become ConflictError; any other storage failure is
    logged with its traceback and surfaced as InternalError.
    """
    try:
        yield db.session
        db.session.commit()
    except EngineError:
        db.session.rollback()
        raise
    except StaleDataError as exc:
        db.session.rollback()
        current_app.logger.warning('Stale write on entity %s: %s', entity_id, exc)
        raise ConflictError(
            'The record was modified by another session. Reload and retry.',
            entity_id=entity_id
        ) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception('Storage failure (entity_id=%s)', entity_id)
        raise InternalError(entity_id=entity_id) from exc
    except Exception:
        db.session.rollback()
        raise
