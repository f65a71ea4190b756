# crm/services/contact_store.py
from datetime import datetime

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..errors import DuplicateContact, NotFound
from ..models.contact import Contact
from ..pagination import build_cursor_filter


class ContactStore:
    """Persistence for contact documents. No business rules live here."""

    def __init__(self, db):
        self.db = db
        self.contacts_collection = db['contacts']
        self.contacts_collection.create_index([('owner_id', 1), ('phone', 1)], unique=True)
        self.contacts_collection.create_index([('tag_ids', 1)])
        self.contacts_collection.create_index([('created_at', -1)])

    def insert(self, contact):
        try:
            self.contacts_collection.insert_one(contact.to_dict())
        except DuplicateKeyError as e:
            raise DuplicateContact('Contact already exists') from e
        return contact

    def get(self, contact_id):
        contact_data = self.contacts_collection.find_one({'_id': contact_id})
        return Contact.from_dict(contact_data) if contact_data else None

    def get_or_raise(self, contact_id):
        contact = self.get(contact_id)
        if not contact:
            raise NotFound(f"Contact with ID {contact_id} not found")
        return contact

    def find_by_phone(self, phone, owner_id, exclude_id=None):
        query = {'phone': phone, 'owner_id': ObjectId(owner_id)}
        if exclude_id:
            query['_id'] = {'$ne': exclude_id}
        contact_data = self.contacts_collection.find_one(query)
        return Contact.from_dict(contact_data) if contact_data else None

    def find(self, query, sort=None, limit=None, cursor=None):
        """
        Runs a query with optional ordering, page size and cursor. The cursor
        is the id of the last row already seen; rows after it are returned.
        """
        if cursor is not None and sort:
            cursor_data = self.contacts_collection.find_one({'_id': cursor})
            if not cursor_data:
                raise NotFound(f"Cursor contact {cursor} not found")
            query = {'$and': [query, build_cursor_filter(cursor_data, sort)]}

        results = self.contacts_collection.find(query)
        if sort:
            results = results.sort(sort)
        if limit:
            results = results.limit(limit)
        return [Contact.from_dict(data) for data in results]

    def count(self, query):
        return self.contacts_collection.count_documents(query)

    def update_fields(self, contact_id, fields):
        fields = dict(fields, updated_at=datetime.utcnow())
        try:
            contact_data = self.contacts_collection.find_one_and_update(
                {'_id': contact_id},
                {'$set': fields},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError as e:
            raise DuplicateContact('Contact already exists') from e
        if not contact_data:
            raise NotFound(f"Contact with ID {contact_id} not found")
        return Contact.from_dict(contact_data)

    def add_tag(self, contact_id, tag_id):
        contact_data = self.contacts_collection.find_one_and_update(
            {'_id': contact_id},
            {'$addToSet': {'tag_ids': tag_id}},
            return_document=ReturnDocument.AFTER
        )
        return Contact.from_dict(contact_data) if contact_data else None

    def remove_tag(self, contact_id, tag_id):
        contact_data = self.contacts_collection.find_one_and_update(
            {'_id': contact_id},
            {'$pull': {'tag_ids': tag_id}},
            return_document=ReturnDocument.AFTER
        )
        return Contact.from_dict(contact_data) if contact_data else None

    def delete(self, contact_id):
        return self.contacts_collection.delete_one({'_id': contact_id}).deleted_count > 0

    def delete_many(self, contact_ids, owner_id=None):
        """Deletes the given contacts, restricted to one owner when owner_id is set."""
        query = {'_id': {'$in': list(contact_ids)}}
        if owner_id:
            query['owner_id'] = ObjectId(owner_id)
        deleted_ids = [data['_id'] for data in self.contacts_collection.find(query, {'_id': 1})]
        if deleted_ids:
            self.contacts_collection.delete_many({'_id': {'$in': deleted_ids}})
        return deleted_ids
