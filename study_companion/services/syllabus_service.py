"""Per-user syllabus uploads and saved chapter breakdowns."""

import time

from study_companion.errors import InvalidRequestError, NotFoundError, PermissionDeniedError
from study_companion.repositories import syllabus_repo
from study_companion.repositories.query_utils import snapshot_to_dict, sort_by_timestamp

MAX_SYLLABUS_TEXT_LEN = 200000
MAX_TITLE_LEN = 200
MAX_ROWS_LISTED = 100


def sanitize_syllabus_text(raw_value):
    text = str(raw_value or '').strip()
    if not text:
        raise InvalidRequestError('syllabusContent is required')
    return text[:MAX_SYLLABUS_TEXT_LEN]


def default_title(text):
    first_line = text.split('\n', 1)[0].strip()
    return first_line[:MAX_TITLE_LEN] or 'Untitled syllabus'


def save_syllabus(content, title, decoded_token, *, db, time_module=time):
    text = sanitize_syllabus_text(content)
    payload = {
        'userId': decoded_token['uid'],
        'title': str(title or '').strip()[:MAX_TITLE_LEN] or default_title(text),
        'content': text,
        'createdAt': time_module.time(),
    }
    _, doc_ref = syllabus_repo.add_syllabus(db, payload)
    return {**payload, 'id': doc_ref.id}


def list_syllabuses(decoded_token, *, db):
    docs = syllabus_repo.list_syllabuses_by_user(db, decoded_token['uid'], MAX_ROWS_LISTED)
    return sort_by_timestamp([snapshot_to_dict(doc) for doc in docs], descending=True)


def get_syllabus(syllabus_id, decoded_token, *, db):
    snapshot = syllabus_repo.get_syllabus_doc(db, syllabus_id)
    if not snapshot.exists:
        raise NotFoundError('Syllabus not found')
    syllabus = snapshot_to_dict(snapshot)
    if syllabus.get('userId') != decoded_token['uid']:
        raise PermissionDeniedError('Forbidden')
    return syllabus


def save_breakdown(chapters, topic, decoded_token, syllabus_id='', *, db, time_module=time):
    if not isinstance(chapters, list) or not chapters:
        raise InvalidRequestError('chapters must be a non-empty list')
    payload = {
        'userId': decoded_token['uid'],
        'syllabusId': str(syllabus_id or '')[:128],
        'topic': str(topic or '').strip()[:MAX_TITLE_LEN],
        'breakdown': chapters,
        'createdAt': time_module.time(),
    }
    _, doc_ref = syllabus_repo.add_breakdown(db, payload)
    return {**payload, 'id': doc_ref.id}


def list_breakdowns(decoded_token, *, db):
    docs = syllabus_repo.list_breakdowns_by_user(db, decoded_token['uid'], MAX_ROWS_LISTED)
    return sort_by_timestamp([snapshot_to_dict(doc) for doc in docs], descending=True)
