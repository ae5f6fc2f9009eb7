"""Per-user notes taken against a chapter of a saved breakdown."""

import time

from study_companion.errors import InvalidRequestError, NotFoundError, PermissionDeniedError
from study_companion.repositories import notes_repo
from study_companion.repositories.query_utils import snapshot_to_dict, sort_by_timestamp

MAX_NOTE_TITLE_LEN = 200
MAX_NOTE_CONTENT_LEN = 20000
MAX_REF_LEN = 128
MAX_NOTES_LISTED = 500
SEARCH_FIELDS = ('title', 'content', 'chatTitle', 'chapterTitle')
EDITABLE_FIELDS = ('title', 'content')


def _clean(value, limit):
    return str(value or '').strip()[:limit]


def _require_content(content):
    text = _clean(content, MAX_NOTE_CONTENT_LEN)
    if not text:
        raise InvalidRequestError('Note content is required')
    return text


def create_note(payload, decoded_token, *, db, time_module=time):
    if not isinstance(payload, dict):
        raise InvalidRequestError('Invalid payload')
    content = _require_content(payload.get('content'))
    chapter_title = _clean(payload.get('chapterTitle'), MAX_NOTE_TITLE_LEN)
    now = time_module.time()
    note = {
        'userId': decoded_token['uid'],
        'title': _clean(payload.get('title'), MAX_NOTE_TITLE_LEN) or chapter_title or 'Untitled note',
        'content': content,
        'chatId': _clean(payload.get('chatId'), MAX_REF_LEN),
        'chatTitle': _clean(payload.get('chatTitle'), MAX_NOTE_TITLE_LEN),
        'chapterId': _clean(payload.get('chapterId'), MAX_REF_LEN),
        'chapterTitle': chapter_title,
        'createdAt': now,
        'updatedAt': now,
    }
    _, doc_ref = notes_repo.add_note(db, note)
    return {**note, 'id': doc_ref.id}


def note_matches(note, search_term):
    needle = str(search_term or '').strip().lower()
    if not needle:
        return True
    return any(needle in str(note.get(field, '') or '').lower() for field in SEARCH_FIELDS)


def list_notes(decoded_token, search_term='', chat_id='', *, db):
    """Notes of the caller, most recently updated first.

    ``search_term`` matches case-insensitively against the title, content,
    breakdown title and chapter title.
    """
    rows = [snapshot_to_dict(doc) for doc in notes_repo.list_notes_by_user(db, decoded_token['uid'], MAX_NOTES_LISTED)]
    safe_chat_id = _clean(chat_id, MAX_REF_LEN)
    if safe_chat_id:
        rows = [row for row in rows if row.get('chatId') == safe_chat_id]
    rows = [row for row in rows if note_matches(row, search_term)]
    return sort_by_timestamp(rows, field_name='updatedAt', descending=True)


def get_owned_note(note_id, decoded_token, *, db):
    snapshot = notes_repo.get_note_doc(db, note_id)
    if not snapshot.exists:
        raise NotFoundError('Note not found')
    note = snapshot_to_dict(snapshot)
    if note.get('userId') != decoded_token['uid']:
        raise PermissionDeniedError('Forbidden')
    return note


def update_note(note_id, payload, decoded_token, *, db, time_module=time):
    if not isinstance(payload, dict):
        raise InvalidRequestError('Invalid payload')
    note = get_owned_note(note_id, decoded_token, db=db)
    updates = {}
    if 'title' in payload:
        updates['title'] = _clean(payload.get('title'), MAX_NOTE_TITLE_LEN) or note.get('title', '')
    if 'content' in payload:
        updates['content'] = _require_content(payload.get('content'))
    if not updates:
        raise InvalidRequestError(f"Nothing to update; editable fields are {', '.join(EDITABLE_FIELDS)}")
    updates['updatedAt'] = time_module.time()
    notes_repo.update_note(db, note_id, updates)
    return {**note, **updates}


def delete_note(note_id, decoded_token, *, db):
    get_owned_note(note_id, decoded_token, db=db)
    notes_repo.delete_note(db, note_id)
    return True
