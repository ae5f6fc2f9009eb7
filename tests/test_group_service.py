import json

import pytest

from conftest import FakeGenerationClient, FakeVideoClient, FixedClock
from study_companion.errors import GenerationError, InvalidRequestError, NotFoundError, PermissionDeniedError
from study_companion.services import group_service
from study_companion.services.group_service import PendingBreakdownTracker

ALICE = {'uid': 'alice', 'email': 'alice@example.com', 'name': 'Alice'}
BOB = {'uid': 'bob', 'email': 'Bob@Example.com'}


def _chapters_reply(*titles):
    return json.dumps([{'id': f"chapter-{i + 1}", 'title': title, 'explanation': title} for i, title in enumerate(titles)])


def _group(fake_db, clock=None):
    return group_service.create_group('Physics', 'Exam prep', ALICE, db=fake_db, time_module=clock or FixedClock())


def test_create_group_makes_creator_a_member(fake_db):
    group = _group(fake_db)

    stored = fake_db.docs('groups')[group['id']]
    assert stored['members'] == ['alice']
    assert stored['creatorId'] == 'alice'
    assert stored['createdAt'] == 1000.0


def test_create_group_requires_a_name(fake_db):
    with pytest.raises(InvalidRequestError):
        group_service.create_group('   ', '', ALICE, db=fake_db)


def test_list_groups_newest_first(fake_db):
    clock = FixedClock()
    first = group_service.create_group('First', '', ALICE, db=fake_db, time_module=clock)
    clock.now += 10
    second = group_service.create_group('Second', '', ALICE, db=fake_db, time_module=clock)

    assert [group['id'] for group in group_service.list_groups(db=fake_db)] == [second['id'], first['id']]


def test_invite_then_join_clears_pending_invite(fake_db):
    group = _group(fake_db)

    invited = group_service.invite_members(group['id'], ['bob@example.com', 'not-an-email', 'BOB@example.com'], ALICE, db=fake_db)
    joined = group_service.join_group(group['id'], BOB, db=fake_db)

    assert invited == ['bob@example.com']
    assert joined['members'] == ['alice', 'bob']
    stored = fake_db.docs('groups')[group['id']]
    assert stored['members'] == ['alice', 'bob']
    assert stored['pendingInvites'] == []


def test_only_members_can_invite(fake_db):
    group = _group(fake_db)

    with pytest.raises(PermissionDeniedError):
        group_service.invite_members(group['id'], ['x@example.com'], BOB, db=fake_db)
    with pytest.raises(InvalidRequestError):
        group_service.invite_members(group['id'], 'x@example.com', ALICE, db=fake_db)


def test_join_unknown_group_is_not_found(fake_db):
    with pytest.raises(NotFoundError):
        group_service.join_group('missing', BOB, db=fake_db)


def test_messages_are_member_only_and_oldest_first(fake_db):
    clock = FixedClock()
    group = _group(fake_db, clock)
    clock.now = 2000.0
    group_service.post_message(group['id'], 'second', ALICE, db=fake_db, time_module=clock)
    clock.now = 1500.0
    group_service.post_message(group['id'], 'first', ALICE, db=fake_db, time_module=clock)

    messages = group_service.list_messages(group['id'], ALICE, db=fake_db)

    assert [message['content'] for message in messages] == ['first', 'second']
    assert messages[0]['userName'] == 'Alice'
    with pytest.raises(PermissionDeniedError):
        group_service.post_message(group['id'], 'hi', BOB, db=fake_db)
    with pytest.raises(InvalidRequestError):
        group_service.post_message(group['id'], '  ', ALICE, db=fake_db)


def test_create_group_breakdown_persists_and_announces(fake_db):
    group = _group(fake_db)
    tracker = PendingBreakdownTracker(clock=FixedClock())
    generation = FakeGenerationClient([_chapters_reply('Optics', 'Waves')])

    breakdown = group_service.create_group_breakdown(
        group['id'], 'Light and waves', ALICE, 2, 'corr-123456',
        db=fake_db, generation_client=generation, video_client=FakeVideoClient(),
        tracker=tracker, time_module=FixedClock(),
    )

    assert breakdown['correlationId'] == 'corr-123456'
    assert [chapter['title'] for chapter in breakdown['breakdown']] == ['Optics', 'Waves']
    assert fake_db.docs('groupGeneratedBreakdowns')[breakdown['id']]['topic'] == 'Light and waves'
    assert tracker.pending_ids(group['id']) == []
    messages = list(fake_db.docs('groupMessages').values())
    assert messages[0]['type'] == 'generated-content'
    assert messages[0]['content'] == 'Generated new topic: "Light and waves" with 2 chapters'
    assert messages[0]['addedBy'] == 'Alice'


def test_invalid_correlation_id_is_replaced(fake_db):
    group = _group(fake_db)

    breakdown = group_service.create_group_breakdown(
        group['id'], 'Optics', ALICE, None, 'bad id!',
        db=fake_db, generation_client=FakeGenerationClient([_chapters_reply('Optics')]),
        video_client=FakeVideoClient(), id_factory=lambda: 'generated-id',
    )

    assert breakdown['correlationId'] == 'generated-id'


def test_failed_storage_discards_pending_entry(fake_db, monkeypatch):
    group = _group(fake_db)
    tracker = PendingBreakdownTracker(clock=FixedClock())

    def _fail(db, payload):
        raise RuntimeError('write failed')

    monkeypatch.setattr(group_service.groups_repo, 'add_group_breakdown', _fail)

    with pytest.raises(RuntimeError):
        group_service.create_group_breakdown(
            group['id'], 'Optics', ALICE, None, 'corr-abcdef',
            db=fake_db, generation_client=FakeGenerationClient([_chapters_reply('Optics')]),
            video_client=FakeVideoClient(), tracker=tracker,
        )
    assert tracker.pending_ids(group['id']) == []


def test_generation_failure_still_shares_fallback_chapters(fake_db):
    group = _group(fake_db)
    topic = 'Thermodynamics covers heat, work, internal energy and the laws that connect them.'

    breakdown = group_service.create_group_breakdown(
        group['id'], topic, ALICE,
        db=fake_db, generation_client=FakeGenerationClient([GenerationError('Generation failed')]),
        video_client=FakeVideoClient(),
    )

    assert len(breakdown['breakdown']) == 1
    assert breakdown['breakdown'][0]['explanation'] == topic


def test_tracker_shows_pending_until_document_arrives():
    clock = FixedClock()
    tracker = PendingBreakdownTracker(ttl_seconds=120, clock=clock)
    tracker.add_pending('g1', 'corr-1', {'topic': 'Optics', 'createdAt': 1000.0})
    older = {'id': 'doc-1', 'topic': 'Old', 'createdAt': 900.0, 'correlationId': 'corr-0'}

    view = tracker.merge_view('g1', [older])

    assert [(row['topic'], row['pending']) for row in view] == [('Optics', True), ('Old', False)]
    assert view[0]['id'] is None
    assert view[0]['correlationId'] == 'corr-1'

    persisted = {'id': 'doc-2', 'topic': 'Optics', 'createdAt': 1000.0, 'correlationId': 'corr-1'}
    view = tracker.merge_view('g1', [older, persisted])

    assert [(row['id'], row['pending']) for row in view] == [('doc-2', False), ('doc-1', False)]
    assert tracker.pending_ids('g1') == []


def test_tracker_ignores_pending_registered_after_document():
    tracker = PendingBreakdownTracker(clock=FixedClock())

    assert tracker.observe('g1', [{'correlationId': 'corr-9'}]) == []
    assert tracker.add_pending('g1', 'corr-9', {'topic': 'Late'}) is False
    assert tracker.pending_ids('g1') == []


def test_tracker_expires_stale_entries():
    clock = FixedClock()
    tracker = PendingBreakdownTracker(ttl_seconds=60, clock=clock)
    tracker.add_pending('g1', 'corr-1', {'topic': 'Stuck', 'createdAt': 1000.0})
    tracker.add_pending('g2', 'corr-2', {'topic': 'Other group', 'createdAt': 1000.0})

    assert tracker.pending_ids('g1') == ['corr-1']
    clock.now += 61

    assert sorted(tracker.expire()) == ['corr-1', 'corr-2']
    assert tracker.merge_view('g1', []) == []


def test_tracker_prunes_on_writes_without_any_listing():
    clock = FixedClock()
    tracker = PendingBreakdownTracker(ttl_seconds=60, clock=clock)
    tracker.add_pending('g1', 'corr-1', {'topic': 'Stuck'})
    tracker.observe('g1', [{'correlationId': 'corr-2'}])
    assert tracker.tracked_count() == 2

    clock.now += 61
    tracker.observe('g2', [{'correlationId': 'corr-3'}])

    assert tracker.tracked_count() == 1
    assert tracker.pending_ids('g1') == []
    assert tracker.add_pending('g1', 'corr-2', {'topic': 'Reused'}) is True


def test_tracker_replaces_entry_with_same_correlation_id():
    tracker = PendingBreakdownTracker(clock=FixedClock())
    tracker.add_pending('g1', 'corr-1', {'topic': 'First', 'createdAt': 1.0})
    tracker.add_pending('g1', 'corr-1', {'topic': 'Retry', 'createdAt': 2.0})

    view = tracker.merge_view('g1', [])

    assert [row['topic'] for row in view] == ['Retry']


def test_list_group_breakdowns_requires_membership(fake_db):
    group = _group(fake_db)

    with pytest.raises(PermissionDeniedError):
        group_service.list_group_breakdowns(group['id'], BOB, db=fake_db)
    assert group_service.list_group_breakdowns(group['id'], ALICE, db=fake_db) == []
