# crm/services/group_service.py
import logging

from bson import ObjectId

from ..errors import InvalidInput, NotFound
from ..models.group import Group
from ..utils.ids import to_object_id


class GroupService:
    def __init__(self, db, tag_service):
        self.db = db
        self.groups_collection = db['groups']
        self.contacts_collection = db['contacts']
        self.tag_service = tag_service
        self.logger = logging.getLogger('crm.groups')
        self.groups_collection.create_index([('tag_ids', 1)])
        self.groups_collection.create_index([('contact_ids', 1)])

    def create_group(self, owner_id, title, tag_ids=None, is_inclusive=True):
        """
        Creates a group with a tag rule and seeds its member cache by evaluating
        the rule once against the owner's current contacts. After this point the
        cache is only changed incrementally by the membership engine.
        """
        title = (title or '').strip()
        if not title:
            raise InvalidInput('Group title cannot be empty.')

        owner_oid = ObjectId(owner_id)
        tags = self.tag_service.get_owned_tags(tag_ids or [], owner_oid)
        rule_tag_ids = list(dict.fromkeys(tag._id for tag in tags))

        contact_ids = []
        if rule_tag_ids:
            operator = '$in' if is_inclusive else '$all'
            contact_ids = [
                contact['_id'] for contact in self.contacts_collection.find(
                    {'owner_id': owner_oid, 'tag_ids': {operator: rule_tag_ids}}, {'_id': 1}
                )
            ]

        group = Group(
            title=title,
            owner_id=owner_oid,
            is_inclusive=is_inclusive,
            tag_ids=rule_tag_ids,
            contact_ids=contact_ids
        )
        self.groups_collection.insert_one(group.to_dict())
        self.logger.info(f"Created group {group.id} with {len(rule_tag_ids)} rule tags and {len(contact_ids)} members")
        return group

    def get_group(self, group_id, owner_id=None):
        """Retrieves a single group, optionally scoped to its owner."""
        query = {'_id': to_object_id(group_id, 'Group')}
        if owner_id:
            query['owner_id'] = ObjectId(owner_id)
        group_data = self.groups_collection.find_one(query)
        if not group_data:
            raise NotFound(f"Group with ID {group_id} not found")
        return Group.from_dict(group_data)

    def list_groups(self, owner_id=None):
        query = {'owner_id': ObjectId(owner_id)} if owner_id else {}
        return [Group.from_dict(data) for data in self.groups_collection.find(query).sort('created_at', -1)]

    def find_groups_for_tags(self, tag_ids):
        """Groups whose rule references at least one of the given tags."""
        return [Group.from_dict(data) for data in self.groups_collection.find({'tag_ids': {'$in': list(tag_ids)}})]

    def groups_for_contacts(self, contact_ids):
        """Maps each contact id to the groups currently listing it as a member."""
        memberships = {contact_id: [] for contact_id in contact_ids}
        if not contact_ids:
            return memberships
        for data in self.groups_collection.find({'contact_ids': {'$in': list(contact_ids)}}):
            group = Group.from_dict(data)
            for contact_id in group.contact_ids:
                if contact_id in memberships:
                    memberships[contact_id].append(group)
        return memberships

    def add_member(self, group_id, contact_id):
        self.groups_collection.update_one({'_id': group_id}, {'$addToSet': {'contact_ids': contact_id}})

    def remove_member(self, group_id, contact_id):
        self.groups_collection.update_one({'_id': group_id}, {'$pull': {'contact_ids': contact_id}})

    def get_owned_groups(self, group_ids, owner_id):
        oids = [to_object_id(group_id, 'Group') for group_id in group_ids]
        found = {
            data['_id'] for data in self.groups_collection.find(
                {'_id': {'$in': oids}, 'owner_id': ObjectId(owner_id)}, {'_id': 1}
            )
        }
        missing = [str(oid) for oid in oids if oid not in found]
        if missing:
            raise NotFound(f"Groups not found: {', '.join(missing)}")
        return oids

    def set_contact_groups(self, contact_id, group_ids, owner_id):
        """Replaces every group membership of a contact with the given groups."""
        wanted = self.get_owned_groups(group_ids, owner_id)
        self.groups_collection.update_many(
            {'contact_ids': contact_id, '_id': {'$nin': wanted}},
            {'$pull': {'contact_ids': contact_id}}
        )
        for group_oid in wanted:
            self.add_member(group_oid, contact_id)

    def remove_contacts(self, contact_ids):
        """Drops deleted contacts from every member cache."""
        if not contact_ids:
            return
        self.groups_collection.update_many(
            {'contact_ids': {'$in': list(contact_ids)}},
            {'$pullAll': {'contact_ids': list(contact_ids)}}
        )

    def delete_group(self, group_id, owner_id=None):
        group = self.get_group(group_id, owner_id)
        result = self.groups_collection.delete_one({'_id': group._id})
        return result.deleted_count > 0
