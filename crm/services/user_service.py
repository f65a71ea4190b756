# crm/services/user_service.py
from bson import ObjectId
import bcrypt
from pymongo.errors import DuplicateKeyError

from ..errors import InvalidInput, NotFound
from ..models.user import ROLE_USER, ROLES, User
from ..utils.ids import to_object_id


class UserService:
    def __init__(self, db):
        self.db = db
        self.users_collection = db['users']
        self.users_collection.create_index('email', unique=True)

    def is_first_run(self):
        return self.users_collection.count_documents({}) == 0

    def create_user(self, email, password, first_name=None, last_name=None, role=ROLE_USER):
        if role not in ROLES:
            raise InvalidInput(f"Unknown role '{role}'")
        if not password:
            raise InvalidInput('Password cannot be empty')

        email = email.strip().lower()
        if self.users_collection.find_one({'email': email}):
            raise InvalidInput('Email already exists')

        password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role
        )
        try:
            self.users_collection.insert_one(user.to_dict())
        except DuplicateKeyError as e:
            raise InvalidInput('Email already exists') from e
        return user

    def get_user(self, user_id):
        if not ObjectId.is_valid(user_id):
            return None
        user_data = self.users_collection.find_one({'_id': ObjectId(user_id)})
        return User.from_dict(user_data) if user_data else None

    def get_user_or_raise(self, user_id):
        user_data = self.users_collection.find_one({'_id': to_object_id(user_id, 'User')})
        if not user_data:
            raise NotFound('User not found')
        return User.from_dict(user_data)

    def get_user_by_email(self, email):
        user_data = self.users_collection.find_one({'email': (email or '').strip().lower()})
        return User.from_dict(user_data) if user_data else None

    def list_users(self):
        return [User.from_dict(data) for data in self.users_collection.find().sort('created_at', 1)]

    def verify_password(self, user, password):
        return bcrypt.checkpw(password.encode('utf-8'), user.password_hash)
