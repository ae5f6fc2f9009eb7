"""Shared Firestore query helpers.

Uses keyword-based filters to avoid positional-argument warnings in newer
Firestore SDK versions. Falls back to positional style for simple test doubles
that do not support keyword filters.
"""

from google.cloud.firestore_v1.base_query import FieldFilter


def apply_where(query, field_path, op_string, value):
    try:
        return query.where(filter=FieldFilter(field_path, op_string, value))
    except TypeError:
        return query.where(field_path, op_string, value)


def snapshot_to_dict(snapshot):
    data = snapshot.to_dict() or {}
    data['id'] = snapshot.id
    return data


def sort_by_timestamp(rows, field_name='createdAt', descending=False):
    """Order plain dicts by a numeric timestamp field; missing values sort first.

    Queries carry no ``order_by`` clause; ordering is applied here.
    """
    def _key(row):
        value = row.get(field_name)
        return float(value) if isinstance(value, (int, float)) else 0.0

    return sorted(rows, key=_key, reverse=descending)
