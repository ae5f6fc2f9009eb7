"""Study groups, group chat and shared chapter breakdowns."""

import logging
import re
import threading
import time

from study_companion.errors import InvalidRequestError, NotFoundError, PermissionDeniedError
from study_companion.repositories import groups_repo
from study_companion.repositories.query_utils import snapshot_to_dict, sort_by_timestamp
from study_companion.services import auth_service, pipeline_service

logger = logging.getLogger('study_companion.groups')

MESSAGE_TYPES = {'message', 'generated-content', 'ai-content'}
MAX_GROUP_NAME_LEN = 120
MAX_GROUP_DESCRIPTION_LEN = 1000
MAX_MESSAGE_LEN = 4000
MAX_TOPIC_LEN = 20000
MAX_INVITES_PER_REQUEST = 50
MAX_GROUPS_LISTED = 200
MAX_MESSAGES_LISTED = 500
MAX_BREAKDOWNS_LISTED = 100
CORRELATION_ID_RE = re.compile(r'^[A-Za-z0-9_-]{6,80}$')
EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def get_group(group_id, *, db):
    snapshot = groups_repo.get_group_doc(db, group_id)
    if not snapshot.exists:
        raise NotFoundError('Group not found')
    return snapshot_to_dict(snapshot)


def require_member(group, uid):
    if uid not in (group.get('members') or []):
        raise PermissionDeniedError('You are not a member of this group')


def create_group(name, description, decoded_token, *, db, time_module=time):
    safe_name = str(name or '').strip()[:MAX_GROUP_NAME_LEN]
    if not safe_name:
        raise InvalidRequestError('Group name is required')
    uid = decoded_token['uid']
    payload = {
        'name': safe_name,
        'description': str(description or '').strip()[:MAX_GROUP_DESCRIPTION_LEN],
        'members': [uid],
        'creatorId': uid,
        'pendingInvites': [],
        'createdAt': time_module.time(),
    }
    _, doc_ref = groups_repo.add_group(db, payload)
    return {**payload, 'id': doc_ref.id}


def list_groups(*, db, limit=MAX_GROUPS_LISTED):
    rows = [snapshot_to_dict(doc) for doc in groups_repo.list_groups(db, limit)]
    return sort_by_timestamp(rows, descending=True)


def join_group(group_id, decoded_token, *, db):
    group = get_group(group_id, db=db)
    uid = decoded_token['uid']
    if uid in (group.get('members') or []):
        return group
    email = auth_service.normalized_email(decoded_token)
    invited = email if email and email in (group.get('pendingInvites') or []) else ''
    groups_repo.add_member(db, group_id, uid, remove_invite=invited)
    group['members'] = list(group.get('members') or []) + [uid]
    if invited:
        group['pendingInvites'] = [item for item in group.get('pendingInvites') or [] if item != invited]
    return group


def invite_members(group_id, emails, decoded_token, *, db):
    if not isinstance(emails, list):
        raise InvalidRequestError('emails must be a list')
    group = get_group(group_id, db=db)
    require_member(group, decoded_token['uid'])
    cleaned = []
    for raw_email in emails[:MAX_INVITES_PER_REQUEST]:
        email = str(raw_email or '').strip().lower()
        if EMAIL_RE.match(email) and email not in cleaned:
            cleaned.append(email)
    if not cleaned:
        raise InvalidRequestError('No valid email addresses provided')
    groups_repo.add_pending_invites(db, group_id, cleaned)
    return cleaned


def post_message(group_id, content, decoded_token, *, db, time_module=time, message_type='message', topic=''):
    safe_content = str(content or '').strip()[:MAX_MESSAGE_LEN]
    if not safe_content:
        raise InvalidRequestError('Message content is required')
    if message_type not in MESSAGE_TYPES:
        raise InvalidRequestError('Invalid message type')
    group = get_group(group_id, db=db)
    require_member(group, decoded_token['uid'])
    user_name = auth_service.display_name_from_token(decoded_token)
    payload = {
        'groupId': group_id,
        'userId': decoded_token['uid'],
        'userName': user_name,
        'content': safe_content,
        'type': message_type,
        'createdAt': time_module.time(),
    }
    if message_type == 'generated-content':
        payload['addedBy'] = user_name
        payload['topic'] = str(topic or '')[:MAX_GROUP_NAME_LEN]
    _, doc_ref = groups_repo.add_message(db, payload)
    return {**payload, 'id': doc_ref.id}


def list_messages(group_id, decoded_token, *, db, limit=MAX_MESSAGES_LISTED):
    group = get_group(group_id, db=db)
    require_member(group, decoded_token['uid'])
    rows = [snapshot_to_dict(doc) for doc in groups_repo.list_messages_by_group(db, group_id, limit)]
    return sort_by_timestamp(rows)


def list_persisted_breakdowns(group_id, *, db, limit=MAX_BREAKDOWNS_LISTED):
    return [snapshot_to_dict(doc) for doc in groups_repo.list_group_breakdowns(db, group_id, limit)]


def sanitize_correlation_id(raw_value):
    value = str(raw_value or '').strip()
    return value if CORRELATION_ID_RE.match(value) else ''


def create_group_breakdown(
    group_id,
    topic,
    decoded_token,
    num_questions=None,
    correlation_id='',
    *,
    db,
    generation_client,
    video_client,
    tracker=None,
    time_module=time,
    id_factory=None,
):
    """Generate chapters for a topic and share them with the group.

    While generation runs, the breakdown is visible to other readers as a
    pending entry keyed by ``correlation_id``.
    """
    safe_topic = str(topic or '').strip()[:MAX_TOPIC_LEN]
    if not safe_topic:
        raise InvalidRequestError('Topic is required')
    group = get_group(group_id, db=db)
    require_member(group, decoded_token['uid'])
    correlation_id = sanitize_correlation_id(correlation_id) or (id_factory() if id_factory else '')
    user_name = auth_service.display_name_from_token(decoded_token)
    created_at = time_module.time()

    if tracker is not None and correlation_id:
        tracker.add_pending(group_id, correlation_id, {
            'groupId': group_id,
            'userId': decoded_token['uid'],
            'userName': user_name,
            'topic': safe_topic[:MAX_GROUP_NAME_LEN],
            'createdAt': created_at,
        })
    try:
        result = pipeline_service.generate_chapters(
            safe_topic,
            num_questions,
            generation_client=generation_client,
            video_client=video_client,
        )
        payload = {
            'groupId': group_id,
            'userId': decoded_token['uid'],
            'userName': user_name,
            'topic': safe_topic[:MAX_GROUP_NAME_LEN],
            'breakdown': result.chapters,
            'correlationId': correlation_id,
            'createdAt': created_at,
        }
        _, doc_ref = groups_repo.add_group_breakdown(db, payload)
    except Exception:
        if tracker is not None and correlation_id:
            tracker.discard(group_id, correlation_id)
        raise
    if tracker is not None and correlation_id:
        tracker.observe(group_id, [payload])

    try:
        post_message(
            group_id,
            f'Generated new topic: "{payload["topic"]}" with {len(result.chapters)} chapters',
            decoded_token,
            db=db,
            time_module=time_module,
            message_type='generated-content',
            topic=payload['topic'],
        )
    except Exception as exc:
        logger.warning(f"Failed to add message about new topic in group {group_id}: {exc}")
    return {**payload, 'id': doc_ref.id}


def list_group_breakdowns(group_id, decoded_token, *, db, tracker=None):
    group = get_group(group_id, db=db)
    require_member(group, decoded_token['uid'])
    persisted = list_persisted_breakdowns(group_id, db=db)
    if tracker is None:
        return sort_by_timestamp(persisted, descending=True)
    return tracker.merge_view(group_id, persisted)


class PendingBreakdownTracker:
    """Pending group breakdowns awaiting their persisted Firestore document.

    Entries are keyed by a client correlation id. An entry is dropped as soon
    as a persisted document carrying the same ``correlationId`` is observed, or
    once it is older than ``ttl_seconds``. Snapshots may arrive in any order
    relative to ``add_pending``; a document observed first simply means the
    pending entry is never shown.
    """

    def __init__(self, ttl_seconds=120.0, clock=time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._pending = {}
        self._observed = {}
        self._lock = threading.Lock()

    def add_pending(self, group_id, correlation_id, entry):
        key = (group_id, correlation_id)
        with self._lock:
            self._prune(self._clock())
            if key in self._observed:
                return False
            self._pending[key] = {'entry': dict(entry), 'registered_at': self._clock()}
            return True

    def discard(self, group_id, correlation_id):
        with self._lock:
            return self._pending.pop((group_id, correlation_id), None) is not None

    def observe(self, group_id, persisted_docs):
        """Drop pending entries matched by persisted documents; return matched ids."""
        matched = []
        now = self._clock()
        with self._lock:
            self._prune(now)
            for doc in persisted_docs:
                correlation_id = str(doc.get('correlationId', '') or '')
                if not correlation_id:
                    continue
                key = (group_id, correlation_id)
                self._observed[key] = now
                if self._pending.pop(key, None) is not None:
                    matched.append(correlation_id)
        return matched

    def _prune(self, now):
        # Caller holds self._lock.
        cutoff = now - self.ttl_seconds
        expired = []
        for key, record in list(self._pending.items()):
            if record['registered_at'] < cutoff:
                del self._pending[key]
                expired.append(key[1])
        for key, observed_at in list(self._observed.items()):
            if observed_at < cutoff:
                del self._observed[key]
        return expired

    def expire(self):
        """Drop entries older than the TTL; return expired correlation ids."""
        now = self._clock()
        with self._lock:
            return self._prune(now)

    def tracked_count(self):
        """Number of pending plus recently observed correlation ids."""
        with self._lock:
            return len(self._pending) + len(self._observed)

    def pending_ids(self, group_id):
        with self._lock:
            return [key[1] for key in self._pending if key[0] == group_id]

    def merge_view(self, group_id, persisted_docs):
        """Persisted documents plus still-pending entries, newest first."""
        self.observe(group_id, persisted_docs)
        with self._lock:
            pending_rows = [
                {**record['entry'], 'id': None, 'correlationId': key[1], 'pending': True}
                for key, record in self._pending.items()
                if key[0] == group_id
            ]
        rows = [dict(doc, pending=False) for doc in persisted_docs] + pending_rows
        return sort_by_timestamp(rows, descending=True)
