"""Contrat du Persistent Store au-dessus d'une Session SQLAlchemy.

Seuls les repositories (app.services.*_service) appellent ces fonctions.
update/delete ne lèvent pas d'erreur pour un id absent: ils renvoient None/False.
Les opérations peuvent être regroupées dans un même `with transaction(db)`.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session):
    """Commit si tout passe, sinon rollback: aucune écriture partielle n'est visible.

    Imbriquée dans une autre transaction sur la même session, elle ne fait rien:
    c'est la transaction englobante qui commit ou rollback.
    """
    if db.info.get("in_transaction"):
        yield db
        return

    db.info["in_transaction"] = True
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Store transaction failed")
        raise StoreError("Store transaction failed") from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.info.pop("in_transaction", None)


def insert(db: Session, row):
    with transaction(db):
        db.add(row)
        db.flush()
    db.refresh(row)
    return row


def get(db: Session, model, row_id) -> Optional[Any]:
    return db.get(model, row_id)


def query(db: Session, model, filters: Iterable = (), order: Iterable = ()) -> List[Any]:
    q = db.query(model)
    for condition in filters:
        q = q.filter(condition)
    return q.order_by(*order).all()


def update(db: Session, model, row_id, fields: dict) -> Optional[Any]:
    with transaction(db):
        row = db.get(model, row_id)
        if row is None:
            return None
        for field, value in fields.items():
            setattr(row, field, value)
        db.flush()
    db.refresh(row)
    return row


def delete(db: Session, model, row_id) -> bool:
    with transaction(db):
        row = db.get(model, row_id)
        if row is None:
            return False
        db.delete(row)
        db.flush()
    return True
