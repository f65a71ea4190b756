# crm/models/tag.py
from datetime import datetime
from bson import ObjectId


class Tag:
    def __init__(self, title, owner_id, _id=None, last_applied=None, created_at=None):
        self._id = _id or ObjectId()
        self.title = title
        self.owner_id = owner_id
        self.last_applied = last_applied
        self.created_at = created_at or datetime.utcnow()

    @property
    def id(self):
        return str(self._id)

    @classmethod
    def from_dict(cls, data):
        return cls(
            _id=data.get('_id'),
            title=data.get('title'),
            owner_id=data.get('owner_id'),
            last_applied=data.get('last_applied'),
            created_at=data.get('created_at')
        )

    def to_dict(self):
        return {
            "_id": self._id,
            "title": self.title,
            "owner_id": self.owner_id,
            "last_applied": self.last_applied,
            "created_at": self.created_at
        }

    def to_summary(self):
        return {"id": self.id, "title": self.title}

    def to_json(self):
        return {
            "id": self.id,
            "title": self.title,
            "ownerId": str(self.owner_id),
            "lastApplied": self.last_applied.isoformat() if self.last_applied else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None
        }
