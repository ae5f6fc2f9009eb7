"""Firestore accessors for per-user study notes."""

from .query_utils import apply_where


def note_doc_ref(db, note_id):
    return db.collection('notes').document(note_id)


def add_note(db, payload):
    return db.collection('notes').add(payload)


def get_note_doc(db, note_id):
    return note_doc_ref(db, note_id).get()


def list_notes_by_user(db, uid, limit):
    return list(apply_where(db.collection('notes'), 'userId', '==', uid).limit(limit).stream())


def update_note(db, note_id, updates):
    return note_doc_ref(db, note_id).update(updates)


def delete_note(db, note_id):
    return note_doc_ref(db, note_id).delete()
