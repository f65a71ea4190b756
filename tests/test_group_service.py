"""Tests for GroupService: creation, membership seeding and structural cleanup."""

import pytest
from bson import ObjectId

from crm.errors import InvalidInput, NotFound
from crm.schemas import ConnectList, ConnectRef, CreateContactDto


@pytest.fixture
def group_service(services):
    return services.group_service


@pytest.fixture
def tagged(services, user):
    """Three contacts tagged A, B and A+B respectively."""
    tag_a, tag_b = services.tag_service.upsert_many(["A", "B"], user.id)

    def make(phone, *tags):
        refs = ConnectList(connect=[ConnectRef(id=tag.id) for tag in tags])
        return services.contact_service.create(CreateContactDto(phone=phone, tags=refs), user.id)

    return {
        "tags": (tag_a, tag_b),
        "only_a": make("+491701111111", tag_a),
        "only_b": make("+491702222222", tag_b),
        "both": make("+491703333333", tag_a, tag_b),
    }


class TestCreateGroup:
    """Tests for create_group()."""

    def test_inclusive_group_seeds_any_holder(self, group_service, tagged, user):
        tag_a, tag_b = tagged["tags"]

        group = group_service.create_group(user.id, "Any", [tag_a.id, tag_b.id], is_inclusive=True)

        expected = {tagged[name]._id for name in ("only_a", "only_b", "both")}
        assert set(group.contact_ids) == expected

    def test_exclusive_group_seeds_full_holders(self, group_service, tagged, user):
        tag_a, tag_b = tagged["tags"]

        group = group_service.create_group(user.id, "All", [tag_a.id, tag_b.id], is_inclusive=False)

        assert group.contact_ids == [tagged["both"]._id]

    def test_group_without_rule_starts_empty(self, group_service, tagged, user):
        assert group_service.create_group(user.id, "Manual").contact_ids == []

    def test_foreign_rule_tag_rejected(self, services, group_service, user, other_user):
        foreign = services.tag_service.create_tag("X", other_user.id)

        with pytest.raises(NotFound):
            group_service.create_group(user.id, "Bad", [foreign.id])

    def test_blank_title_rejected(self, group_service, user):
        with pytest.raises(InvalidInput):
            group_service.create_group(user.id, " ")


class TestQueries:
    """Tests for lookups used by the engine and serializers."""

    def test_get_group_scoped_to_owner(self, group_service, user, other_user):
        group = group_service.create_group(user.id, "Mine")

        assert group_service.get_group(group.id, user.id).id == group.id
        with pytest.raises(NotFound):
            group_service.get_group(group.id, other_user.id)

    def test_find_groups_for_tags(self, group_service, tagged, user):
        tag_a, tag_b = tagged["tags"]
        by_a = group_service.create_group(user.id, "A", [tag_a.id])
        group_service.create_group(user.id, "B", [tag_b.id])

        assert [group.id for group in group_service.find_groups_for_tags([tag_a._id])] == [by_a.id]

    def test_groups_for_contacts(self, group_service, tagged, user):
        tag_a, _ = tagged["tags"]
        group = group_service.create_group(user.id, "A", [tag_a.id])

        memberships = group_service.groups_for_contacts([tagged["only_a"]._id, tagged["only_b"]._id])

        assert [g.id for g in memberships[tagged["only_a"]._id]] == [group.id]
        assert memberships[tagged["only_b"]._id] == []


class TestMembershipEdits:
    """Tests for direct membership and structural cleanup."""

    def test_owned_groups_reject_foreign_ids(self, group_service, user, other_user):
        mine = group_service.create_group(user.id, "Mine")
        theirs = group_service.create_group(other_user.id, "Theirs")

        assert group_service.get_owned_groups([mine.id], user.id) == [mine._id]
        with pytest.raises(NotFound):
            group_service.get_owned_groups([mine.id, theirs.id], user.id)

    def test_remove_contacts_pulls_from_every_group(self, group_service, tagged, user):
        tag_a, tag_b = tagged["tags"]
        first = group_service.create_group(user.id, "A", [tag_a.id])
        second = group_service.create_group(user.id, "B", [tag_b.id])

        group_service.remove_contacts([tagged["both"]._id])

        assert tagged["both"]._id not in group_service.get_group(first.id).contact_ids
        assert tagged["both"]._id not in group_service.get_group(second.id).contact_ids
        assert tagged["only_a"]._id in group_service.get_group(first.id).contact_ids

    def test_delete_group(self, group_service, user):
        group = group_service.create_group(user.id, "Gone")

        assert group_service.delete_group(group.id, user.id) is True
        with pytest.raises(NotFound):
            group_service.get_group(group.id)

    def test_delete_unknown_group(self, group_service):
        with pytest.raises(NotFound):
            group_service.delete_group(str(ObjectId()))
