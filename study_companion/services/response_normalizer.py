"""Turns raw generation output into a chapter list.

Model output is parsed with the greedy array rule from ``json_extraction``.
Anything that does not yield at least one chapter object is reported as
``UnparsedOutput`` and replaced by chapters synthesized from the syllabus.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from study_companion.services.json_extraction import extract_json_array
from study_companion.services.quiz_service import build_placeholder_question

FALLBACK_MIN_SEGMENT_CHARS = 50
FALLBACK_MAX_CHAPTERS = 10
FALLBACK_PRACTICE_QUESTIONS = 3
FALLBACK_SEARCH_QUERY = 'example search query'
NUMBERED_PREFIX_RE = re.compile(r'^[0-9]+\.?\s*')

FALLBACK_MOST_PROBABLE_QUESTIONS = [
    {'question': 'What is the main concept of this chapter?', 'answer': 'The main concept is ...'},
    {'question': 'Explain a key example from this chapter.', 'answer': 'A key example is ...'},
    {'question': 'List important points to remember from this chapter.', 'answer': 'Important points are ...'},
]


@dataclass
class ParsedChapters:
    chapters: List[Dict[str, Any]]


@dataclass
class UnparsedOutput:
    raw_text: Optional[str]
    reason: str = field(default='unparseable')


GenerationOutput = Union[ParsedChapters, UnparsedOutput]


def interpret_generation_output(raw_text) -> GenerationOutput:
    if raw_text is None or not str(raw_text).strip():
        return UnparsedOutput(raw_text, 'empty')
    candidate = extract_json_array(raw_text)
    if candidate is None:
        return UnparsedOutput(raw_text, 'no-array')
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return UnparsedOutput(raw_text, 'invalid-json')
    chapters = [item for item in parsed if isinstance(item, dict)]
    if not chapters:
        return UnparsedOutput(raw_text, 'no-chapters')
    return ParsedChapters(chapters)


def _fallback_title(segment, index):
    first_line = segment.split('\n')[0]
    title = NUMBERED_PREFIX_RE.sub('', first_line).strip()
    return title or f"Chapter {index + 1}"


def _fallback_chapter(segment, index):
    title = _fallback_title(segment, index)
    return {
        'id': f"chapter-{index + 1}",
        'title': title,
        'explanation': segment,
        'mostProbableQuestions': [dict(item) for item in FALLBACK_MOST_PROBABLE_QUESTIONS],
        'practiceQuestions': [build_placeholder_question(i, title) for i in range(FALLBACK_PRACTICE_QUESTIONS)],
        'youtubeQueries': [{'query': FALLBACK_SEARCH_QUERY, 'timestamp': 0}],
        'youtubeVideos': [],
    }


def build_fallback_chapters(syllabus_text):
    """Synthesize chapters from blank-line separated paragraphs of the syllabus."""
    text = (syllabus_text or '').strip()
    if not text:
        return []
    segments = [segment.strip() for segment in text.split('\n\n')]
    segments = [segment for segment in segments if len(segment) > FALLBACK_MIN_SEGMENT_CHARS]
    if not segments:
        # Short syllabi still produce one chapter.
        segments = [text]
    return [_fallback_chapter(segment, index) for index, segment in enumerate(segments[:FALLBACK_MAX_CHAPTERS])]


def ensure_unique_ids(chapters):
    """Give every chapter an id that is unique within the batch."""
    seen = set()
    for index, chapter in enumerate(chapters):
        chapter_id = str(chapter.get('id') or '').strip()
        if not chapter_id or chapter_id in seen:
            chapter_id = f"chapter-{index + 1}"
            suffix = 2
            while chapter_id in seen:
                chapter_id = f"chapter-{index + 1}-{suffix}"
                suffix += 1
        chapter['id'] = chapter_id
        seen.add(chapter_id)
    return chapters


def normalize_chapters(raw_text, syllabus_text):
    """Return ``(chapters, fallback_reason)``; the reason is None when the output parsed."""
    output = interpret_generation_output(raw_text)
    if isinstance(output, ParsedChapters):
        return ensure_unique_ids(output.chapters), None
    return build_fallback_chapters(syllabus_text), output.reason
