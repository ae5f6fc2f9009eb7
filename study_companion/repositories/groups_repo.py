"""Firestore accessors for study groups, group messages and group breakdowns."""

from firebase_admin import firestore

from .query_utils import apply_where


def group_doc_ref(db, group_id):
    return db.collection('groups').document(group_id)


def get_group_doc(db, group_id):
    return group_doc_ref(db, group_id).get()


def add_group(db, payload):
    return db.collection('groups').add(payload)


def list_groups(db, limit):
    return list(db.collection('groups').limit(limit).stream())


def add_member(db, group_id, uid, remove_invite=''):
    updates = {'members': firestore.ArrayUnion([uid])}
    if remove_invite:
        updates['pendingInvites'] = firestore.ArrayRemove([remove_invite])
    return group_doc_ref(db, group_id).update(updates)


def add_pending_invites(db, group_id, emails):
    return group_doc_ref(db, group_id).update({'pendingInvites': firestore.ArrayUnion(list(emails))})


def add_message(db, payload):
    return db.collection('groupMessages').add(payload)


def list_messages_by_group(db, group_id, limit):
    return list(apply_where(db.collection('groupMessages'), 'groupId', '==', group_id).limit(limit).stream())


def add_group_breakdown(db, payload):
    return db.collection('groupGeneratedBreakdowns').add(payload)


def list_group_breakdowns(db, group_id, limit):
    return list(apply_where(db.collection('groupGeneratedBreakdowns'), 'groupId', '==', group_id).limit(limit).stream())
