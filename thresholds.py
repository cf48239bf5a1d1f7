import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import THRESHOLDS
from errors import StoreError, ValidationError
from schemas import DEFAULT_HUMIDITY, DEFAULT_TEMPERATURE, Threshold

logger = logging.getLogger(__name__)


class ThresholdStore:
    """One threshold record per device name, created on first read."""

    def __init__(self, db: Database, default_device_name: str = "KVB") -> None:
        self.collection = db[THRESHOLDS]
        self.default_device_name = default_device_name

    def upsert(
        self,
        device_name: Optional[str],
        temperature: Optional[float] = None,
        humidity: Optional[float] = None,
    ) -> Dict[str, Any]:
        if not device_name:
            raise ValidationError("device_name is required")

        # None means "not sent"; an explicit 0 is a real setpoint
        values = {
            "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
            "humidity": DEFAULT_HUMIDITY if humidity is None else humidity,
            "last_updated": datetime.now(timezone.utc),
        }
        try:
            doc = self.collection.find_one_and_update(
                {"device_name": device_name},
                {"$set": values},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.exception("Error saving threshold for %s", device_name)
            raise StoreError("Error saving threshold") from e
        logger.info("Threshold for %s set to %s", device_name, values)
        return doc

    def get_or_default(self, device_name: Optional[str] = None) -> Dict[str, Any]:
        name = device_name or self.default_device_name
        try:
            doc = self.collection.find_one({"device_name": name})
            if doc is not None:
                return doc

            doc = Threshold(device_name=name, last_updated=datetime.now(timezone.utc)).model_dump()
            try:
                self.collection.insert_one(doc)
            except DuplicateKeyError:
                # another request created it first
                return self.collection.find_one({"device_name": name})
        except PyMongoError as e:
            logger.exception("Error fetching threshold for %s", name)
            raise StoreError("Error fetching threshold") from e
        logger.info("Created default threshold for %s", name)
        return doc

    def list_all(self) -> List[Dict[str, Any]]:
        try:
            return list(self.collection.find().sort("device_name", ASCENDING))
        except PyMongoError as e:
            logger.exception("Error listing thresholds")
            raise StoreError("Error fetching thresholds") from e
