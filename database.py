import logging
from typing import Any, Dict, Optional, Tuple

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

READINGS = "readings"
THRESHOLDS = "thresholds"


def connect(url: str, name: str) -> Tuple[MongoClient, Database]:
    client: MongoClient = MongoClient(url, tz_aware=True)
    logger.info("Connected to MongoDB database %s", name)
    return client, client[name]


def ensure_indexes(db: Database) -> None:
    db[READINGS].create_index([("timestamp", DESCENDING)])
    # one threshold record per device; also settles racing first reads
    db[THRESHOLDS].create_index([("device_name", ASCENDING)], unique=True)


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    return {**doc, "_id": str(doc.get("_id"))}
