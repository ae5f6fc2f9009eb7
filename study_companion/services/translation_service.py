"""Per-field chapter translation through the generation service."""

import copy
import hashlib
import json
import logging
import threading
from collections import OrderedDict

from study_companion.errors import ConfigurationError, GenerationError, InvalidRequestError
from study_companion.services import prompt_registry

logger = logging.getLogger('study_companion.translation')

MAX_TRANSLATION_TEXT_LEN = 20000


def translate_text(text, target_lang, *, generation_client):
    """Translate one string. Returns '' when the service produced no text."""
    text = str(text or '')
    if len(text) > MAX_TRANSLATION_TEXT_LEN:
        raise InvalidRequestError(f'Text exceeds {MAX_TRANSLATION_TEXT_LEN} characters')
    prompt = prompt_registry.build_translation_prompt(text, target_lang)
    translated = generation_client.generate_text(prompt)
    return (translated or '').strip()


def _translate_field(value, target_lang, generation_client):
    if not isinstance(value, str) or not value.strip():
        return value
    if len(value) > MAX_TRANSLATION_TEXT_LEN:
        logger.info(f"Keeping original text for one field ({target_lang}): {len(value)} characters exceeds limit")
        return value
    try:
        translated = translate_text(value, target_lang, generation_client=generation_client)
    except GenerationError as exc:
        logger.info(f"Keeping original text for one field ({target_lang}): {exc}")
        return value
    return translated or value


def _translate_practice_question(item, target_lang, generation_client):
    if not isinstance(item, dict):
        return item
    result = dict(item)
    original_options = item.get('options') if isinstance(item.get('options'), list) else []
    options = [_translate_field(option, target_lang, generation_client) for option in original_options]
    result['question'] = _translate_field(item.get('question'), target_lang, generation_client)
    result['options'] = options
    answer = item.get('correctAnswer')
    if answer in original_options:
        # Reuse the translated option so the answer still matches exactly.
        result['correctAnswer'] = options[original_options.index(answer)]
    else:
        result['correctAnswer'] = _translate_field(answer, target_lang, generation_client)
    result['explanation'] = _translate_field(item.get('explanation'), target_lang, generation_client)
    return result


def translate_chapter(chapter, target_lang, *, generation_client):
    """Return a translated deep copy of ``chapter``; the source is left untouched."""
    if not generation_client.configured:
        raise ConfigurationError('Gemini API key not set')
    translated = copy.deepcopy(chapter)
    translated['title'] = _translate_field(chapter.get('title'), target_lang, generation_client)
    translated['explanation'] = _translate_field(chapter.get('explanation'), target_lang, generation_client)

    pairs = chapter.get('mostProbableQuestions')
    if isinstance(pairs, list):
        translated['mostProbableQuestions'] = [
            {
                **pair,
                'question': _translate_field(pair.get('question'), target_lang, generation_client),
                'answer': _translate_field(pair.get('answer'), target_lang, generation_client),
            } if isinstance(pair, dict) else pair
            for pair in pairs
        ]

    questions = chapter.get('practiceQuestions')
    if isinstance(questions, list):
        translated['practiceQuestions'] = [
            _translate_practice_question(item, target_lang, generation_client) for item in questions
        ]
    return translated


def batch_cache_key(chapters):
    raw = json.dumps(chapters, sort_keys=True, ensure_ascii=True, default=str).encode('utf-8')
    return hashlib.sha256(raw).hexdigest()


class TranslationCache:
    """Translated chapter lists keyed by (batch, target language).

    Entries are stored and returned as deep copies so callers never share
    state with the cache or with the source chapters.
    """

    def __init__(self, max_entries=64):
        self.max_entries = max_entries
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def _key(batch_key, target_lang):
        return (str(batch_key), str(target_lang or '').strip().lower())

    def get(self, batch_key, target_lang):
        key = self._key(batch_key, target_lang)
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return copy.deepcopy(self._entries[key])

    def put(self, batch_key, target_lang, chapters):
        key = self._key(batch_key, target_lang)
        with self._lock:
            self._entries[key] = copy.deepcopy(chapters)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def __len__(self):
        with self._lock:
            return len(self._entries)


def translate_chapters(chapters, target_lang, *, generation_client, cache=None, batch_key=None):
    """Translate a chapter list, reusing a cached result for identical content.

    The cache key always includes a hash of ``chapters``; ``batch_key`` only
    narrows it further.
    """
    content_key = batch_cache_key(chapters)
    key = f"{batch_key}:{content_key}" if batch_key else content_key
    if cache is not None:
        cached = cache.get(key, target_lang)
        if cached is not None:
            return cached
    translated = [translate_chapter(chapter, target_lang, generation_client=generation_client) for chapter in chapters]
    if cache is not None:
        cache.put(key, target_lang, translated)
    return translated
