# crm/services/tag_service.py
import logging
from datetime import datetime

from bson import ObjectId
from pymongo import ReturnDocument

from ..errors import InvalidInput, NotFound
from ..models.tag import Tag
from ..utils.ids import to_object_id


class TagService:
    def __init__(self, db):
        self.db = db
        self.tags_collection = db['tags']
        self.contacts_collection = db['contacts']
        self.groups_collection = db['groups']
        self.logger = logging.getLogger('crm.tags')
        self.tags_collection.create_index([('owner_id', 1), ('title', 1)], unique=True)

    def create_tag(self, title, owner_id):
        """Creates a tag, or returns the owner's existing tag with the same title."""
        title = (title or '').strip()
        if not title:
            raise InvalidInput('Tag title cannot be empty.')

        tag_data = self.tags_collection.find_one_and_update(
            {'owner_id': ObjectId(owner_id), 'title': title},
            {'$setOnInsert': {'last_applied': None, 'created_at': datetime.utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return Tag.from_dict(tag_data)

    def upsert_many(self, titles, owner_id):
        """
        Idempotently resolves tag titles to tags for one owner.
        Blank titles are skipped and repeated titles collapse to one tag;
        the result keeps the order in which titles first appear.
        """
        tags = []
        seen = set()
        for title in titles or []:
            title = (title or '').strip()
            if not title or title in seen:
                continue
            seen.add(title)
            tags.append(self.create_tag(title, owner_id))
        return tags

    def get_tag(self, tag_id):
        tag_data = self.tags_collection.find_one({'_id': to_object_id(tag_id, 'Tag')})
        if not tag_data:
            raise NotFound(f"Tag with ID {tag_id} not found")
        return Tag.from_dict(tag_data)

    def get_tags(self, tag_ids):
        """Fetches several tags at once, keyed by ObjectId."""
        if not tag_ids:
            return {}
        cursor = self.tags_collection.find({'_id': {'$in': list(tag_ids)}})
        return {tag_data['_id']: Tag.from_dict(tag_data) for tag_data in cursor}

    def get_owned_tags(self, tag_ids, owner_id):
        """Resolves tag ids for an owner; any unknown or foreign id is a NotFound."""
        oids = [to_object_id(tag_id, 'Tag') for tag_id in tag_ids]
        found = {
            tag_data['_id']: Tag.from_dict(tag_data)
            for tag_data in self.tags_collection.find({'_id': {'$in': oids}, 'owner_id': ObjectId(owner_id)})
        }
        missing = [str(oid) for oid in oids if oid not in found]
        if missing:
            raise NotFound(f"Tags not found: {', '.join(missing)}")
        return [found[oid] for oid in oids]

    def list_tags(self, owner_id=None):
        query = {'owner_id': ObjectId(owner_id)} if owner_id else {}
        return [Tag.from_dict(tag_data) for tag_data in self.tags_collection.find(query).sort('title', 1)]

    def touch(self, tag_id):
        """Records that the tag was just applied to a contact."""
        self.tags_collection.update_one({'_id': tag_id}, {'$set': {'last_applied': datetime.utcnow()}})

    def delete_tag(self, tag_id, owner_id=None):
        """
        Deletes a tag and strips it from every contact and group rule that
        references it. This is structural cleanup; no membership cascade runs.
        """
        tag = self.get_tag(tag_id)
        if owner_id and tag.owner_id != ObjectId(owner_id):
            raise NotFound(f"Tag with ID {tag_id} not found")

        self.contacts_collection.update_many({'tag_ids': tag._id}, {'$pull': {'tag_ids': tag._id}})
        self.groups_collection.update_many({'tag_ids': tag._id}, {'$pull': {'tag_ids': tag._id}})
        self.tags_collection.delete_one({'_id': tag._id})
        self.logger.info(f"Deleted tag {tag.id} ('{tag.title}')")
        return tag
