"""Tests for TagService."""

import pytest
from bson import ObjectId

from crm.errors import InvalidInput, NotFound
from crm.schemas import ConnectList, ConnectRef, CreateContactDto


@pytest.fixture
def tag_service(services):
    return services.tag_service


class TestCreateTag:
    """Tests for create_tag() and upsert_many()."""

    def test_title_is_trimmed(self, tag_service, user):
        assert tag_service.create_tag("  VIP ", user.id).title == "VIP"

    def test_same_title_returns_existing_tag(self, tag_service, user):
        first = tag_service.create_tag("VIP", user.id)
        second = tag_service.create_tag("VIP", user.id)

        assert second.id == first.id

    def test_titles_are_unique_per_owner_only(self, tag_service, user, other_user):
        mine = tag_service.create_tag("VIP", user.id)
        theirs = tag_service.create_tag("VIP", other_user.id)

        assert mine.id != theirs.id

    def test_blank_title_rejected(self, tag_service, user):
        with pytest.raises(InvalidInput):
            tag_service.create_tag("   ", user.id)

    def test_upsert_many_dedupes_and_keeps_order(self, tag_service, user):
        tags = tag_service.upsert_many(["b", "a", "", "b", " a "], user.id)

        assert [tag.title for tag in tags] == ["b", "a"]
        assert len(tag_service.list_tags(user.id)) == 2


class TestLookups:
    """Tests for get_tag(), get_tags() and get_owned_tags()."""

    def test_get_tag_missing(self, tag_service):
        with pytest.raises(NotFound):
            tag_service.get_tag(str(ObjectId()))

    def test_get_tag_malformed_id(self, tag_service):
        with pytest.raises(NotFound):
            tag_service.get_tag("nope")

    def test_get_tags_keyed_by_object_id(self, tag_service, user):
        tag = tag_service.create_tag("VIP", user.id)

        assert tag_service.get_tags([tag._id])[tag._id].title == "VIP"
        assert tag_service.get_tags([]) == {}

    def test_owned_tags_reject_foreign_ids(self, tag_service, user, other_user):
        mine = tag_service.create_tag("Mine", user.id)
        theirs = tag_service.create_tag("Theirs", other_user.id)

        assert [tag.id for tag in tag_service.get_owned_tags([mine.id], user.id)] == [mine.id]
        with pytest.raises(NotFound):
            tag_service.get_owned_tags([mine.id, theirs.id], user.id)


class TestDeleteTag:
    """Tests for delete_tag()."""

    def test_strips_tag_from_contacts_and_rules(self, services, tag_service, user):
        tag = tag_service.create_tag("VIP", user.id)
        group = services.group_service.create_group(user.id, "VIPs", [tag.id])
        contact = services.contact_service.create(
            CreateContactDto(phone="+491701111111", tags=ConnectList(connect=[ConnectRef(id=tag.id)])), user.id
        )

        tag_service.delete_tag(tag.id, user.id)

        assert services.contact_store.get(contact._id).tag_ids == []
        assert services.group_service.get_group(group.id).tag_ids == []
        with pytest.raises(NotFound):
            tag_service.get_tag(tag.id)

    def test_foreign_owner_cannot_delete(self, tag_service, user, other_user):
        tag = tag_service.create_tag("VIP", user.id)

        with pytest.raises(NotFound):
            tag_service.delete_tag(tag.id, other_user.id)
