import itertools

import pytest

from study_companion import create_app
from study_companion.config import AppConfig
from study_companion.errors import ConfigurationError


class FakeGenerationClient:
    """Stands in for GenerationClient; replies are consumed in order."""

    def __init__(self, replies=None, configured=True, default=None):
        self.replies = list(replies or [])
        self.configured = configured
        self.default = default
        self.prompts = []

    def generate_text(self, prompt_text, max_output_tokens=None):
        if not self.configured:
            raise ConfigurationError('Gemini API key not set')
        self.prompts.append(prompt_text)
        reply = self.replies.pop(0) if self.replies else self.default
        if callable(reply):
            reply = reply(prompt_text)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeVideoClient:
    """Maps query text to search items, or to an exception to raise."""

    def __init__(self, results=None, configured=True):
        self.results = dict(results or {})
        self.configured = configured
        self.calls = []

    def require_configured(self):
        if not self.configured:
            raise ConfigurationError('YouTube API key not set')

    def search(self, query, max_results=1, order='relevance'):
        self.require_configured()
        self.calls.append((query, max_results, order))
        result = self.results.get(query, [])
        if isinstance(result, Exception):
            raise result
        return list(result)[:max_results]


def search_item(video_id, title, thumbnail='https://img.example/default.jpg'):
    snippet = {'title': title}
    if thumbnail:
        snippet['thumbnails'] = {'default': {'url': thumbnail}}
    return {'id': {'videoId': video_id}, 'snippet': snippet}


class _Snapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class _DocRef:
    def __init__(self, store, doc_id):
        self._store = store
        self.id = doc_id

    def get(self):
        return _Snapshot(self.id, self._store.get(self.id))

    def set(self, payload, merge=False):
        if merge and self.id in self._store:
            self._store[self.id].update(payload)
        else:
            self._store[self.id] = dict(payload)

    def delete(self):
        self._store.pop(self.id, None)

    def update(self, updates):
        if self.id not in self._store:
            raise KeyError(self.id)
        doc = self._store[self.id]
        for key, value in updates.items():
            transform = type(value).__name__
            if transform == 'ArrayUnion':
                current = list(doc.get(key) or [])
                doc[key] = current + [item for item in value.values if item not in current]
            elif transform == 'ArrayRemove':
                doc[key] = [item for item in doc.get(key) or [] if item not in value.values]
            else:
                doc[key] = value


class _Query:
    def __init__(self, store, filters=None, limit=None):
        self._store = store
        self._filters = list(filters or [])
        self._limit = limit

    def where(self, *args, **kwargs):
        if 'filter' in kwargs:
            raise TypeError('filter keyword unsupported')
        return _Query(self._store, self._filters + [args], self._limit)

    def limit(self, count):
        return _Query(self._store, self._filters, count)

    def stream(self):
        rows = []
        for doc_id, data in self._store.items():
            if all(op == '==' and data.get(field) == value for field, op, value in self._filters):
                rows.append(_Snapshot(doc_id, data))
        return iter(rows[:self._limit] if self._limit else rows)


class _Collection(_Query):
    def __init__(self, store, id_source):
        super().__init__(store)
        self._id_source = id_source

    def document(self, doc_id=None):
        return _DocRef(self._store, doc_id or f"doc-{next(self._id_source)}")

    def add(self, payload):
        ref = self.document()
        ref.set(payload)
        return None, ref


class FakeFirestore:
    def __init__(self):
        self.collections = {}
        self._ids = itertools.count(1)

    def collection(self, name):
        return _Collection(self.collections.setdefault(name, {}), self._ids)

    def docs(self, name):
        return self.collections.get(name, {})


class FakeAuth:
    """Tokens of the form 'uid' or 'uid|email' verify; 'bad' fails."""

    def verify_id_token(self, token):
        if token == 'bad':
            raise ValueError('invalid token')
        uid, _, email = token.partition('|')
        return {'uid': uid, 'email': email or f"{uid}@example.com", 'name': uid.title()}


def auth_header(token):
    return {'Authorization': f"Bearer {token}"}


class FixedClock:
    def __init__(self, start=1000.0):
        self.now = start

    def time(self):
        return self.now

    def __call__(self):
        return self.now


@pytest.fixture()
def fake_db():
    return FakeFirestore()


@pytest.fixture()
def generation_client():
    return FakeGenerationClient()


@pytest.fixture()
def video_client():
    return FakeVideoClient()


@pytest.fixture()
def app(fake_db, generation_client, video_client):
    config = AppConfig(
        flask_secret_key='test-secret',
        log_level='WARNING',
        gemini_api_key='test-gemini-key',
        youtube_api_key='test-youtube-key',
    )
    flask_app = create_app(config=config, db=fake_db)
    flask_app.config['TESTING'] = True
    state = flask_app.extensions['study_companion']
    state['generation_client'] = generation_client
    state['video_client'] = video_client
    state['auth_module'] = FakeAuth()
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client
