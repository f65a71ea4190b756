# crm/models/contact.py
from datetime import datetime
from bson import ObjectId


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


class Contact:
    def __init__(self, owner_id, phone, first_name=None, last_name=None, country_code=None,
                 email=None, birthday=None, active=True, notes=None, tag_ids=None,
                 _id=None, created_at=None, updated_at=None):
        self._id = _id or ObjectId()
        # A contact is owned by exactly one user.
        self.owner_id = owner_id
        self.first_name = first_name
        self.last_name = last_name
        # Canonical international form, unique per owner.
        self.phone = phone
        self.country_code = country_code
        self.email = email
        self.birthday = birthday
        self.active = active
        self.notes = notes
        self.tag_ids = list(tag_ids or [])
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or self.created_at

    @property
    def id(self):
        return str(self._id)

    @classmethod
    def from_dict(cls, data):
        return cls(
            _id=data.get('_id'),
            owner_id=data.get('owner_id'),
            first_name=data.get('first_name'),
            last_name=data.get('last_name'),
            phone=data.get('phone'),
            country_code=data.get('country_code'),
            email=data.get('email'),
            birthday=data.get('birthday'),
            active=data.get('active', True),
            notes=data.get('notes'),
            tag_ids=data.get('tag_ids', []),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at')
        )

    def to_dict(self):
        return {
            "_id": self._id,
            "owner_id": self.owner_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "country_code": self.country_code,
            "email": self.email,
            "birthday": self.birthday,
            "active": self.active,
            "notes": self.notes,
            "tag_ids": self.tag_ids,
            "created_at": self.created_at,
            "updated_at": self.updated_at
        }

    def to_json(self, tags=None, groups=None):
        """Serializes the contact for API responses, with optional tag/group summaries."""
        return {
            "id": self.id,
            "ownerId": str(self.owner_id) if self.owner_id else None,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "countryCode": self.country_code,
            "email": self.email,
            "birthday": _iso(self.birthday),
            "active": self.active,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "tags": [tag.to_summary() for tag in tags] if tags is not None
                    else [{"id": str(tag_id)} for tag_id in self.tag_ids],
            "groups": [group.to_summary() for group in groups] if groups is not None else [],
        }
