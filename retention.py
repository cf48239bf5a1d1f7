import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import READINGS
from errors import StoreError
from schemas import Reading

logger = logging.getLogger(__name__)


class ReadingStore:
    """Keeps the newest `limit` readings across all devices."""

    def __init__(self, db: Database, limit: int = 3) -> None:
        self.collection = db[READINGS]
        self.limit = limit

    def ingest(self, reading: Reading) -> Dict[str, Any]:
        data = reading.model_dump(exclude_none=True)
        if data.get("timestamp") is None:
            data["timestamp"] = datetime.now(timezone.utc)

        try:
            self.collection.insert_one(data)
        except PyMongoError as e:
            logger.exception("Error saving reading")
            raise StoreError("Error saving data") from e

        logger.info("Data received: %s", reading.model_dump(exclude_none=True))
        self.trim()
        return data

    def trim(self) -> int:
        """Delete everything past the retention window. Failures are logged, not raised."""
        try:
            stale = self.collection.find().sort("timestamp", DESCENDING).skip(self.limit)
            ids = [doc["_id"] for doc in stale]
            if not ids:
                return 0
            self.collection.delete_many({"_id": {"$in": ids}})
        except PyMongoError:
            logger.warning("Could not trim old readings", exc_info=True)
            return 0
        logger.info("Deleted %d old readings", len(ids))
        return len(ids)

    def latest(self) -> Optional[Dict[str, Any]]:
        try:
            return self.collection.find_one({}, sort=[("timestamp", DESCENDING)])
        except PyMongoError as e:
            logger.exception("Error fetching latest reading")
            raise StoreError("Error fetching latest data") from e

    def recent(self) -> List[Dict[str, Any]]:
        try:
            return list(self.collection.find().sort("timestamp", DESCENDING).limit(self.limit))
        except PyMongoError as e:
            logger.exception("Error fetching recent readings")
            raise StoreError("Error fetching recent data") from e
