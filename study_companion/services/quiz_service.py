"""Practice-question normalization and quiz regeneration."""

import logging

from study_companion.services import prompt_registry
from study_companion.services.json_extraction import parse_json_list

logger = logging.getLogger('study_companion.quiz')

OPTIONS_PER_QUESTION = 4
PLACEHOLDER_OPTIONS = ['Option A', 'Option B', 'Option C', 'Option D']
PLACEHOLDER_EXPLANATION = 'Review the chapter explanation to confirm the correct answer.'


def build_placeholder_question(index, chapter_title):
    topic = str(chapter_title or '').strip() or 'this chapter'
    return {
        'type': 'multiple-choice',
        'question': f"Practice question {index + 1}: Which statement best describes a key idea of {topic}?",
        'options': list(PLACEHOLDER_OPTIONS),
        'correctAnswer': PLACEHOLDER_OPTIONS[0],
        'explanation': PLACEHOLDER_EXPLANATION,
    }


def _clean_options(raw_options):
    if not isinstance(raw_options, list):
        return []
    return [str(option).strip() for option in raw_options if str(option).strip()]


def repair_practice_question(item):
    """Coerce one model-produced question into four options with a valid answer.

    Returns a new dict. Already valid items come back unchanged in content.
    """
    options = _clean_options(item.get('options'))
    answer = str(item.get('correctAnswer', item.get('answer', '')) or '').strip()

    if len(options) > OPTIONS_PER_QUESTION:
        head = options[:OPTIONS_PER_QUESTION]
        if answer and answer in options and answer not in head:
            head[-1] = answer
        options = head
    for placeholder in PLACEHOLDER_OPTIONS:
        if len(options) >= OPTIONS_PER_QUESTION:
            break
        if placeholder not in options:
            options.append(placeholder)

    if answer not in options:
        if answer:
            options[-1] = answer
        else:
            answer = options[0]

    return {
        'type': 'multiple-choice',
        'question': str(item.get('question', '') or '').strip(),
        'options': options,
        'correctAnswer': answer,
        'explanation': str(item.get('explanation', '') or '').strip(),
    }


def enforce_question_count(chapters, count=None):
    """Pad or truncate every chapter's practice questions to ``count``.

    Mutates and returns ``chapters``. Applying it twice with the same count
    gives the same result as applying it once.
    """
    target = prompt_registry.resolve_question_count(count)
    for chapter in chapters:
        if not isinstance(chapter, dict):
            continue
        raw_questions = chapter.get('practiceQuestions')
        if not isinstance(raw_questions, list):
            raw_questions = []
        questions = [repair_practice_question(item) for item in raw_questions if isinstance(item, dict)]
        while len(questions) < target:
            questions.append(build_placeholder_question(len(questions), chapter.get('title')))
        chapter['practiceQuestions'] = questions[:target]
    return chapters


def regenerate_quiz(chapter, count, *, generation_client):
    """Ask the generation service for a fresh quiz for one chapter.

    Unusable output keeps the chapter's current questions, normalized to
    ``count``. Transport and configuration errors propagate.
    """
    existing = [
        str(item.get('question', '')) for item in (chapter.get('practiceQuestions') or [])
        if isinstance(item, dict)
    ]
    prompt = prompt_registry.build_quiz_prompt(
        chapter.get('title', ''),
        chapter.get('explanation', ''),
        count,
        existing_questions=existing,
    )
    raw_text = generation_client.generate_text(prompt)
    questions = parse_json_list(raw_text)
    if not questions:
        logger.info(f"Quiz regeneration for '{chapter.get('title', '')}' returned no usable questions")
        questions = chapter.get('practiceQuestions') or []
    scratch = {'title': chapter.get('title', ''), 'practiceQuestions': questions}
    enforce_question_count([scratch], count)
    return scratch['practiceQuestions']


def find_chapter(chapters, key):
    safe_key = str(key or '').strip()
    if not safe_key:
        return None
    for chapter in chapters:
        if isinstance(chapter, dict) and str(chapter.get('id', '')) == safe_key:
            return chapter
    for chapter in chapters:
        if isinstance(chapter, dict) and str(chapter.get('title', '')).strip() == safe_key:
            return chapter
    return None


def replace_chapter_quiz(chapters, key, questions):
    """Return a new chapter list where only the matched chapter's quiz changes."""
    target = find_chapter(chapters, key)
    updated = []
    for chapter in chapters:
        if chapter is target:
            chapter = dict(chapter)
            chapter['practiceQuestions'] = list(questions)
        updated.append(chapter)
    return updated
