"""Firestore accessors for per-user syllabuses and saved breakdowns."""

from .query_utils import apply_where


def add_syllabus(db, payload):
    return db.collection('syllabuses').add(payload)


def list_syllabuses_by_user(db, uid, limit):
    return list(apply_where(db.collection('syllabuses'), 'userId', '==', uid).limit(limit).stream())


def get_syllabus_doc(db, syllabus_id):
    return db.collection('syllabuses').document(syllabus_id).get()


def add_breakdown(db, payload):
    return db.collection('syllabusBreakdowns').add(payload)


def list_breakdowns_by_user(db, uid, limit):
    return list(apply_where(db.collection('syllabusBreakdowns'), 'userId', '==', uid).limit(limit).stream())
