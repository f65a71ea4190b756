# crm/utils/search.py
import re

SEARCHABLE_FIELDS = ('first_name', 'last_name', 'phone', 'email')


def build_search_filter(search, fields=SEARCHABLE_FIELDS):
    """
    Builds a case-insensitive 'contains' filter across the given contact fields.
    The search text is escaped so it always matches literally.
    """
    if not search:
        return {}

    escaped_query = re.escape(search)
    return {
        '$or': [
            {field: {'$regex': escaped_query, '$options': 'i'}}
            for field in fields
        ]
    }
