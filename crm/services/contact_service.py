# crm/services/contact_service.py
import logging
from datetime import date, datetime

from bson import ObjectId

from ..errors import DuplicateContact
from ..models.contact import Contact
from ..pagination import get_paginate_commands
from ..utils.ids import to_object_id, to_object_ids
from ..utils.phone import normalize_phone, phone_region, require_phone
from ..utils.search import build_search_filter

# Plain contact attributes a client may set directly.
CONTACT_FIELDS = ('first_name', 'last_name', 'email', 'birthday', 'active', 'notes')


def _storable(value):
    # BSON has no date-only type.
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value


class ContactService:
    def __init__(self, contact_store, tag_service, group_service, membership_engine):
        self.store = contact_store
        self.tag_service = tag_service
        self.group_service = group_service
        self.membership = membership_engine
        self.logger = logging.getLogger('crm.contacts')

    # --- Validation ---

    def check_existing_contact(self, phone, owner_id, exclude_id=None):
        if self.store.find_by_phone(phone, owner_id, exclude_id=exclude_id):
            raise DuplicateContact('Contact already exists')

    # --- Create ---

    def create(self, dto, owner_id):
        """
        Creates a contact for an owner. The phone must parse and must not
        already belong to another of the owner's contacts. Referenced groups and
        tags are resolved before anything is written, so a bad reference leaves
        no contact behind. Tags are attached through the membership engine so
        groups pick the contact up.
        """
        phone = require_phone(dto.phone)
        self.check_existing_contact(phone, owner_id)

        group_oids = []
        if dto.groups and dto.groups.connect:
            group_oids = self.group_service.get_owned_groups([ref.id for ref in dto.groups.connect], owner_id)
        tags = []
        if dto.tags and dto.tags.connect:
            tags = self.tag_service.get_owned_tags([ref.id for ref in dto.tags.connect], owner_id)

        fields = {name: _storable(getattr(dto, name)) for name in CONTACT_FIELDS if getattr(dto, name) is not None}
        contact = Contact(
            owner_id=ObjectId(owner_id),
            phone=phone,
            country_code=phone_region(phone),
            **fields
        )
        self.store.insert(contact)
        self.logger.info(f"Created contact {contact.id} for owner {owner_id}")

        for group_oid in group_oids:
            self.group_service.add_member(group_oid, contact._id)
        for tag in tags:
            self.membership.attach_tag(tag._id, contact._id)

        return self.store.get_or_raise(contact._id)

    # --- Queries ---

    def find_all(self, owner_id, search=None, sort=None, order=None, cursor_id=None, limit=None, group_id=None):
        query = {'owner_id': ObjectId(owner_id)}
        query.update(build_search_filter(search))
        if group_id:
            group = self.group_service.get_group(group_id, owner_id)
            query['_id'] = {'$in': group.contact_ids}

        commands = get_paginate_commands(
            sort, order, to_object_id(cursor_id, 'Contact') if cursor_id else None, limit
        )
        return self.store.find(
            query,
            sort=commands.get('sort'),
            limit=commands.get('limit'),
            cursor=commands.get('cursor')
        )

    def find_by_tags(self, tag_ids, exclusive=False, owner_id=None):
        """
        'some' mode: contacts holding at least one of the tags.
        'every' mode: contacts holding every one of the tags and no tag outside
        the set. A contact with no tags never qualifies.
        """
        tag_oids = to_object_ids(tag_ids, 'Tag')
        if exclusive and not tag_oids:
            return []
        query = {'tag_ids': {'$all' if exclusive else '$in': tag_oids}}
        if owner_id:
            query['owner_id'] = ObjectId(owner_id)

        contacts = self.store.find(query)
        if not exclusive:
            return contacts

        wanted = set(tag_oids)
        return [contact for contact in contacts if set(contact.tag_ids) <= wanted]

    def get_count(self, owner_id):
        return self.store.count({'owner_id': ObjectId(owner_id)})

    def get_kpis(self, owner_id):
        owner_oid = ObjectId(owner_id)
        return {
            'contactsCount': self.store.count({'owner_id': owner_oid}),
            'activeCount': self.store.count({'owner_id': owner_oid, 'active': True}),
        }

    def find_one(self, contact_id):
        return self.store.get(to_object_id(contact_id, 'Contact'))

    def find_one_by_phone_and_owner(self, phone, owner_id):
        canonical = normalize_phone(phone)
        return self.store.find_by_phone(canonical, owner_id) if canonical else None

    def serialize(self, contacts):
        """Renders contacts with their tag and group summaries in two lookups."""
        tag_ids = {tag_id for contact in contacts for tag_id in contact.tag_ids}
        tags = self.tag_service.get_tags(tag_ids)
        memberships = self.group_service.groups_for_contacts([contact._id for contact in contacts])
        return [
            contact.to_json(
                tags=[tags[tag_id] for tag_id in contact.tag_ids if tag_id in tags],
                groups=memberships.get(contact._id, [])
            )
            for contact in contacts
        ]

    # --- Update / upsert ---

    def update(self, contact_id, dto):
        """
        Partially updates a contact.

        The tag set is always replaced: existing tags are cleared without a
        detach cascade, then every tag in tags.connect is attached through the
        membership engine. Tags merely left out of the payload therefore do
        not pull the contact out of groups.
        """
        contact = self.store.get_or_raise(to_object_id(contact_id, 'Contact'))
        provided = dto.model_dump(exclude_unset=True)

        fields = {name: _storable(provided[name]) for name in CONTACT_FIELDS if name in provided}
        if provided.get('phone'):
            phone = require_phone(provided['phone'])
            self.check_existing_contact(phone, contact.owner_id, exclude_id=contact._id)
            fields['phone'] = phone
            fields['country_code'] = phone_region(phone)
        fields['tag_ids'] = []

        with self.membership.locks.hold(contact._id):
            contact = self.store.update_fields(contact._id, fields)

        if dto.groups:
            self.group_service.set_contact_groups(contact._id, [ref.id for ref in dto.groups], contact.owner_id)

        if dto.tags and dto.tags.connect:
            for ref in dto.tags.connect:
                self.membership.attach_tag(ref.id, contact._id)

        self.logger.info(f"Updated contact {contact.id}")
        return self.store.get_or_raise(contact._id)

    def create_or_update_with_tags(self, dto, owner_id):
        tags = self.tag_service.upsert_many(dto.tags, owner_id)
        return self.upsert(dto, tags, owner_id)

    def upsert(self, dto, tags, owner_id):
        """
        Finds the owner's contact by canonical phone and updates it in place,
        or creates it. The given tags are (re)attached in full, not diffed.
        """
        phone = require_phone(dto.phone)
        owner_oid = ObjectId(owner_id)
        fields = {name: _storable(getattr(dto, name)) for name in CONTACT_FIELDS if getattr(dto, name) is not None}

        with self.membership.locks.hold(('phone', owner_oid, phone)):
            existing = self.store.find_by_phone(phone, owner_oid)
            if existing:
                contact = self.store.update_fields(existing._id, fields)
                self.logger.info(f"Upsert updated contact {contact.id}")
            else:
                contact = Contact(owner_id=owner_oid, phone=phone, country_code=phone_region(phone), **fields)
                self.store.insert(contact)
                self.logger.info(f"Upsert created contact {contact.id}")

        for tag in tags:
            self.membership.attach_tag(tag._id, contact._id)
        return self.store.get_or_raise(contact._id)

    # --- Tags ---

    def add_tag_to_contact(self, tag_id, contact_id):
        return self.membership.attach_tag(tag_id, contact_id)

    def add_tag_to_contacts(self, tag_id, contact_ids, owner_id=None):
        return self.membership.attach_tag_to_many(tag_id, contact_ids, owner_id=owner_id)

    def remove_tag_from_contact(self, tag_id, contact_id):
        return self.membership.detach_tag(tag_id, contact_id)

    # --- Delete ---

    def remove(self, contact_id):
        """
        Deletes a contact. Group caches are cleaned structurally; no detach
        cascade is run because the contact no longer exists.
        """
        contact_oid = to_object_id(contact_id, 'Contact')
        self.store.delete(contact_oid)
        self.group_service.remove_contacts([contact_oid])
        self.logger.info(f"Deleted contact {contact_oid}")

    def remove_many(self, contact_ids, owner_id=None):
        valid_ids = [ObjectId(contact_id) for contact_id in contact_ids if ObjectId.is_valid(contact_id)]
        deleted_ids = self.store.delete_many(valid_ids, owner_id=owner_id)
        self.group_service.remove_contacts(deleted_ids)
        self.logger.info(f"Deleted {len(deleted_ids)} contacts")
        return [str(contact_id) for contact_id in deleted_ids]
