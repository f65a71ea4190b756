# crm/models/group.py
from datetime import datetime
from bson import ObjectId


class Group:
    """
    A Group is a tag rule plus a materialized list of the contacts satisfying it.

    Inclusive groups admit contacts holding any one of the rule's tags,
    exclusive groups only those holding all of them. contact_ids is a cache
    that the membership engine keeps in step with contact-tag associations.
    """
    def __init__(self, title, owner_id, is_inclusive=True, tag_ids=None, contact_ids=None,
                 _id=None, created_at=None):
        self._id = _id or ObjectId()
        self.title = title
        self.owner_id = owner_id
        self.is_inclusive = is_inclusive
        self.tag_ids = list(tag_ids or [])
        self.contact_ids = list(contact_ids or [])
        self.created_at = created_at or datetime.utcnow()

    @property
    def id(self):
        return str(self._id)

    def has_member(self, contact_id):
        return contact_id in self.contact_ids

    @classmethod
    def from_dict(cls, data):
        """Creates a Group instance from a dictionary."""
        return cls(
            title=data.get('title'),
            owner_id=data.get('owner_id'),
            is_inclusive=data.get('is_inclusive', True),
            tag_ids=data.get('tag_ids', []),
            contact_ids=data.get('contact_ids', []),
            _id=data.get('_id'),
            created_at=data.get('created_at')
        )

    def to_dict(self):
        """Converts the Group instance to a dictionary for database storage."""
        return {
            "_id": self._id,
            "title": self.title,
            "owner_id": self.owner_id,
            "is_inclusive": self.is_inclusive,
            "tag_ids": self.tag_ids,
            "contact_ids": self.contact_ids,
            "created_at": self.created_at
        }

    def to_summary(self):
        return {"id": self.id, "title": self.title}

    def to_json(self):
        return {
            "id": self.id,
            "title": self.title,
            "ownerId": str(self.owner_id),
            "isInclusive": self.is_inclusive,
            "tags": [str(tag_id) for tag_id in self.tag_ids],
            "contactsCount": len(self.contact_ids),
            "createdAt": self.created_at.isoformat() if self.created_at else None
        }
