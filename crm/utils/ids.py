# crm/utils/ids.py
from bson import ObjectId
from bson.errors import InvalidId

from ..errors import NotFound


def to_object_id(value, entity='Resource'):
    """Converts a path/body id into an ObjectId; malformed ids are reported as not found."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise NotFound(f"{entity} with ID {value} not found") from e


def to_object_ids(values, entity='Resource'):
    return [to_object_id(value, entity) for value in values]
