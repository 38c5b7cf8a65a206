"""Per-client key/value storage backed by the storage_items table."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core import database
from app.core.errors import StorageError
from app.models.storage_item import StorageItem

logger = logging.getLogger(__name__)


class LocalStorage:
    """String values under string keys, isolated per namespace.

    Each call opens its own DB session, so one instance can be shared by
    several request threads.
    """

    def __init__(self, namespace: str):
        self.namespace = namespace

    def get_item(self, key: str) -> Optional[str]:
        db = database.SessionLocal()
        try:
            item = db.get(StorageItem, (self.namespace, key))
            return item.value if item is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Storage read failed namespace={self.namespace} key={key}: {e}")
            raise StorageError("Local storage is unavailable") from e
        finally:
            db.close()

    def set_item(self, key: str, value: str) -> None:
        db = database.SessionLocal()
        try:
            item = db.get(StorageItem, (self.namespace, key))
            if item is None:
                db.add(StorageItem(namespace=self.namespace, key=key, value=value))
            else:
                item.value = value
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Storage write failed namespace={self.namespace} key={key}: {e}")
            raise StorageError("Could not write to local storage") from e
        finally:
            db.close()

    def remove_item(self, key: str) -> None:
        db = database.SessionLocal()
        try:
            db.query(StorageItem).filter(
                StorageItem.namespace == self.namespace,
                StorageItem.key == key
            ).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Storage delete failed namespace={self.namespace} key={key}: {e}")
            raise StorageError("Could not write to local storage") from e
        finally:
            db.close()
