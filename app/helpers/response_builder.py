from datetime import datetime, timezone
from typing import Any, Dict

from bson import ObjectId

from app.database.connection import UpdateOutcome


def convert_objectid(obj):
    """Convert ObjectId and datetime values into JSON-friendly strings."""
    if isinstance(obj, dict):
        return {key: convert_objectid(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_objectid(item) for item in obj]
    elif isinstance(obj, ObjectId):
        return str(obj)
    elif isinstance(obj, datetime):
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=timezone.utc)
        return obj.isoformat()
    return obj


# Body for a single-document insert, same keys the web client already reads
def build_insert_response(inserted_id: Any) -> Dict[str, Any]:
    return {"acknowledged": True, "insertedId": convert_objectid(inserted_id)}


def build_update_response(outcome: UpdateOutcome) -> Dict[str, Any]:
    return {
        "acknowledged": True,
        "matchedCount": outcome.matched_count,
        "modifiedCount": outcome.modified_count,
        "upsertedId": convert_objectid(outcome.upserted_id),
        "upsertedCount": 1 if outcome.upserted_id is not None else 0,
    }


def message_body(message: str) -> Dict[str, str]:
    return {"message": message}


def error_body(error: str) -> Dict[str, str]:
    return {"error": error}
