# crm/services/membership_engine.py
"""
Keeps every group's member cache consistent with contact-tag associations.

Groups hold a tag rule (inclusive: any rule tag qualifies, exclusive: all rule
tags are required) and a materialized list of member contacts. Instead of
recomputing memberships from scratch, the engine reacts to a single tag being
attached to or detached from a single contact and only re-evaluates the groups
whose rule references that tag.

Each attach/detach runs as one read-modify-write sequence (update the contact's
tags, read the new tag set, evaluate rules, write memberships) while holding the
contact's lock, so two tag changes on the same contact never evaluate rules
against a stale tag set.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from bson import ObjectId
from pymongo.errors import PyMongoError

from ..errors import ApiError, Forbidden, NotFound
from ..utils.ids import to_object_id
from .locks import ContactLocks

logger = logging.getLogger('crm.membership')


def joins_on_attach(group, tag_id, contact_tag_ids) -> bool:
    """
    Whether a non-member contact qualifies for `group` once `tag_id` is attached.
    contact_tag_ids is the contact's tag set after the attach.
    """
    if group.is_inclusive:
        return True
    held = set(contact_tag_ids)
    return all(rule_tag in held for rule_tag in group.tag_ids if rule_tag != tag_id)


def leaves_on_detach(group, tag_id, contact_tag_ids) -> bool:
    """
    Whether a member contact drops out of `group` once `tag_id` is detached.
    contact_tag_ids is the contact's tag set after the detach.

    An exclusive group needs every rule tag, so losing one always ends the
    membership. An inclusive group keeps the contact while any other rule
    tag is still held.
    """
    if not group.is_inclusive:
        return True

    held = set(contact_tag_ids)
    return not any(rule_tag in held for rule_tag in group.tag_ids if rule_tag != tag_id)


@dataclass
class BulkTagResult:
    """Outcome of applying one tag to many contacts."""
    succeeded: List[str] = field(default_factory=list)
    failed: List[dict] = field(default_factory=list)

    def to_json(self):
        return {'succeeded': self.succeeded, 'failed': self.failed}


class GroupMembershipEngine:
    def __init__(self, contact_store, tag_service, group_service, locks=None):
        self.contact_store = contact_store
        self.tag_service = tag_service
        self.group_service = group_service
        self.locks = locks or ContactLocks()

    def _load_pair(self, tag_id, contact_id, owner_id):
        tag = self.tag_service.get_tag(tag_id)
        contact = self.contact_store.get_or_raise(contact_id)
        if owner_id is not None and contact.owner_id != ObjectId(owner_id):
            raise Forbidden('Access denied')
        if tag.owner_id != contact.owner_id:
            raise NotFound(f"Tag with ID {tag_id} not found")
        return tag, contact

    def attach_tag(self, tag_id, contact_id, owner_id: Optional[str] = None):
        """
        Attaches a tag to a contact and admits the contact to every group the
        tag now qualifies it for. Re-attaching an attached tag changes no
        membership but still refreshes the tag's lastApplied timestamp.

        owner_id, when given, restricts the operation to that owner's contacts.
        """
        contact_oid = to_object_id(contact_id, 'Contact')
        with self.locks.hold(contact_oid):
            tag, contact = self._load_pair(tag_id, contact_oid, owner_id)

            contact = self.contact_store.add_tag(contact._id, tag._id)
            if contact is None:
                raise NotFound(f"Contact with ID {contact_id} not found")
            self.tag_service.touch(tag._id)

            for group in self.group_service.find_groups_for_tags([tag._id]):
                if group.has_member(contact._id):
                    continue
                if joins_on_attach(group, tag._id, contact.tag_ids):
                    self.group_service.add_member(group._id, contact._id)
                    logger.info(f"Contact {contact.id} joined group {group.id} via tag {tag.id}")
            return contact

    def detach_tag(self, tag_id, contact_id, owner_id: Optional[str] = None):
        """
        Detaches a tag from a contact and removes the contact from every group
        whose rule it no longer satisfies.
        """
        contact_oid = to_object_id(contact_id, 'Contact')
        with self.locks.hold(contact_oid):
            tag, contact = self._load_pair(tag_id, contact_oid, owner_id)

            contact = self.contact_store.remove_tag(contact._id, tag._id)
            if contact is None:
                raise NotFound(f"Contact with ID {contact_id} not found")

            for group in self.group_service.find_groups_for_tags([tag._id]):
                if not group.has_member(contact._id):
                    continue
                if leaves_on_detach(group, tag._id, contact.tag_ids):
                    self.group_service.remove_member(group._id, contact._id)
                    logger.info(f"Contact {contact.id} left group {group.id} after losing tag {tag.id}")
            return contact

    def attach_tag_to_many(self, tag_id, contact_ids, owner_id: Optional[str] = None) -> BulkTagResult:
        """
        Applies attach_tag to each contact in turn. There is no cross-contact
        atomicity: contacts processed before a failure keep the tag, and the
        failure is reported per contact instead of aborting the batch.
        """
        # Unknown tag fails the whole request before any contact is touched.
        self.tag_service.get_tag(tag_id)

        result = BulkTagResult()
        for contact_id in contact_ids:
            try:
                self.attach_tag(tag_id, contact_id, owner_id=owner_id)
            except ApiError as e:
                logger.warning(f"Could not tag contact {contact_id} with {tag_id}: {e.message}")
                result.failed.append({'id': str(contact_id), 'reason': e.message})
            except PyMongoError as e:
                logger.warning(f"Datastore error tagging contact {contact_id} with {tag_id}: {e}")
                result.failed.append({'id': str(contact_id), 'reason': 'Datastore error'})
            else:
                result.succeeded.append(str(contact_id))
        return result
