# crm/pagination.py
"""
Cursor based pagination for list queries.

A page boundary is the id of the last row of the previous page. The cursor is
turned into a keyset filter over the active sort keys so the next page starts
strictly after that row, whatever the ordering.
"""
from enum import Enum

from pymongo import ASCENDING, DESCENDING

DEFAULT_LIMIT = 25
NO_PAGINATION = -1


class Order(str, Enum):
    ASC = 'asc'
    DESC = 'desc'


class ContactsSorting(str, Enum):
    NAME = 'firstName'
    LAST_NAME = 'lastName'
    CREATED_AT = 'createdAt'
    UPDATED_AT = 'updatedAt'


# Wire sort keys -> stored document fields
SORT_FIELDS = {
    ContactsSorting.NAME: 'first_name',
    ContactsSorting.LAST_NAME: 'last_name',
    ContactsSorting.CREATED_AT: 'created_at',
    ContactsSorting.UPDATED_AT: 'updated_at',
}


def _direction(order):
    return ASCENDING if Order(order or Order.ASC) == Order.ASC else DESCENDING


def get_sort_spec(sort=None, order=None):
    if not sort:
        return [('created_at', DESCENDING), ('_id', DESCENDING)]
    field = SORT_FIELDS[ContactsSorting(sort)]
    return [(field, _direction(order)), ('_id', DESCENDING)]


def get_paginate_commands(sort=None, order=None, cursor_id=None, limit=None):
    """
    Returns the sort/limit/cursor commands for a find() call.

    limit == -1 disables pagination entirely (no ordering, no limit).
    """
    if limit == NO_PAGINATION:
        return {}

    commands = {
        'sort': get_sort_spec(sort, order),
        'limit': limit if limit is not None else DEFAULT_LIMIT,
    }
    if cursor_id is not None:
        commands['cursor'] = cursor_id
    return commands


def _get_path(document, dotted_key):
    value = document
    for part in dotted_key.split('.'):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _after(field, direction, value):
    """
    Condition for rows sorting strictly after `value` on one key, or None when
    nothing can. Nulls sort below every other value, as they do in MongoDB.
    """
    if direction == ASCENDING:
        return {field: {'$ne': None}} if value is None else {field: {'$gt': value}}
    if value is None:
        return None
    return {'$or': [{field: {'$lt': value}}, {field: None}]}


def build_cursor_filter(cursor_document, sort_spec):
    """
    Keyset filter matching every row that sorts strictly after cursor_document.

    For keys (k1, k2, ...) this is:
        k1 after v1  OR  (k1 == v1 AND k2 after v2)  OR  ...
    """
    clauses = []
    equal_prefix = {}
    for field, direction in sort_spec:
        value = _get_path(cursor_document, field)
        after = _after(field, direction, value)
        if after is not None:
            clause = dict(equal_prefix)
            clause.update(after)
            clauses.append(clause)
        equal_prefix[field] = value
    return {'$or': clauses}


def paginate(items, limit):
    """
    Wraps a page of serialized items. cursorID is the id of the last item when
    the page is full, otherwise None to signal the end of the results.
    """
    return {
        'data': items,
        'cursorID': items[-1]['id'] if items and len(items) == limit else None,
    }
