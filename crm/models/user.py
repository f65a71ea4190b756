# crm/models/user.py
from flask_login import UserMixin
from bson import ObjectId
from datetime import datetime

ROLE_USER = 'User'
ROLE_ADMIN = 'Admin'
ROLES = (ROLE_USER, ROLE_ADMIN)


class User(UserMixin):
    def __init__(self, email, password_hash, first_name=None, last_name=None, role=ROLE_USER,
                 _id=None, created_at=None):
        self.email = email
        self.password_hash = password_hash
        self.first_name = first_name
        self.last_name = last_name
        self.role = role
        self.created_at = created_at or datetime.utcnow()
        self._id = _id or ObjectId()

    @property
    def id(self):
        return str(self._id)

    @property
    def is_elevated(self):
        """Any role other than a plain user may act across owners."""
        return self.role != ROLE_USER

    @classmethod
    def from_dict(cls, data):
        return cls(
            email=data['email'],
            password_hash=data['password_hash'],
            first_name=data.get('first_name'),
            last_name=data.get('last_name'),
            role=data.get('role', ROLE_USER),
            _id=data.get('_id'),
            created_at=data.get('created_at')
        )

    def to_dict(self):
        return {
            "_id": self._id,
            "email": self.email,
            "password_hash": self.password_hash,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "created_at": self.created_at
        }

    def to_json(self):
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None
        }
