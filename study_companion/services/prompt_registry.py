"""Prompt templates and inventory helpers for Study Companion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional


PROMPT_REGISTRY_VERSION = "2026-10-01"

DEFAULT_QUESTION_COUNT = 5
MAX_QUESTION_COUNT = 50


PROMPT_CHAPTER_BREAKDOWN = """You are an expert teacher in the subject/domain of the provided syllabus. Use your expertise to break down the following syllabus into as many logical chapters as the content needs, grouping related subtopics together. Do not force a fixed number of chapters.

For each chapter, provide:
1. Chapter title (plain text).
2. A detailed, exam-oriented teaching write-up of the chapter. Write as if you are teaching the chapter to a student, explaining concepts step by step and integrating relevant examples into the narrative. You may use double asterisks (**) to mark important points, key terms, definitions and formulas for bold emphasis.
3. "mostProbableQuestions": an array of 3-5 objects, each with a "question" and a detailed exam-oriented "answer".
4. "practiceQuestions": exactly {num_questions} multiple-choice questions. Each has exactly 4 options, a "correctAnswer" that matches one option exactly, and a short "explanation" of why it is correct.
5. "youtubeQueries": 2-3 search queries for relevant YouTube videos (search terms, not links), each with a suggested start "timestamp" in seconds (0 when unknown).

Format the response as a JSON array. Each chapter must have exactly this shape:
{{
  "id": "chapter-1",
  "title": "Chapter Title",
  "explanation": "Detailed teaching write-up with **important points** marked for bold.",
  "mostProbableQuestions": [
    {{ "question": "Question 1", "answer": "Detailed answer with **bold** for important points." }}
  ],
  "practiceQuestions": [
    {{
      "type": "multiple-choice",
      "question": "Question text",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": "Option A",
      "explanation": "Why this option is correct."
    }}
  ],
  "youtubeQueries": [
    {{ "query": "search query 1", "timestamp": 0 }}
  ]
}}

Formatting rules:
- Plain text only. The only allowed markup is double asterisks (**) for bold inside explanations and answers.
- Do NOT use markdown headings, lists, code fences, HTML, tags or underscores.
- Do NOT use double asterisks in titles.

SYLLABUS:
{syllabus_text}"""

PROMPT_QUIZ_REGENERATION = """You are an expert teacher writing a fresh practice quiz for one chapter of a course.

Write exactly {num_questions} new multiple-choice questions about the chapter below. Each question has exactly 4 options, a "correctAnswer" that matches one option exactly, and a short "explanation". Avoid repeating these existing questions:
{existing_questions}

Return ONLY a JSON array in exactly this format:
[
  {{
    "type": "multiple-choice",
    "question": "Question text",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": "Option A",
    "explanation": "Why this option is correct."
  }}
]

Plain text only, no markdown or HTML.

CHAPTER TITLE: {chapter_title}

CHAPTER CONTENT:
{chapter_explanation}"""

PROMPT_SUBTOPIC_EXPLANATION = """Provide a detailed explanation for the following topic or subtopic from the syllabus context below. Respond with a concise, clear explanation suitable for a student.

TOPIC: {subtopic_name}

SYLLABUS CONTEXT:
{syllabus_text}"""

PROMPT_KNOWLEDGE_TREE = """Analyze the following syllabus and organize it into a hierarchical knowledge tree of topics and subtopics.

Return ONLY a JSON object in exactly this format:
{{
  "name": "Course name",
  "children": [
    {{ "name": "Topic", "children": [ {{ "name": "Subtopic" }} ] }}
  ]
}}

Use short plain-text names. No markdown or HTML.

SYLLABUS:
{syllabus_text}"""

PROMPT_TRANSLATION = """Translate the following educational content to {target_lang}. Translate all sentences, headings, and questions. Only return the translated text, no explanation or extra formatting. If the text is already in {target_lang}, still rewrite it in {target_lang} using natural, fluent phrasing.

{text}"""


@dataclass(frozen=True)
class PromptRecord:
    prompt_id: str
    name: str
    template: str


PROMPT_RECORDS: List[PromptRecord] = [
    PromptRecord("chapter_breakdown", "Syllabus chapter breakdown", PROMPT_CHAPTER_BREAKDOWN),
    PromptRecord("quiz_regeneration", "Chapter quiz regeneration", PROMPT_QUIZ_REGENERATION),
    PromptRecord("subtopic_explanation", "Subtopic explanation", PROMPT_SUBTOPIC_EXPLANATION),
    PromptRecord("knowledge_tree", "Knowledge tree", PROMPT_KNOWLEDGE_TREE),
    PromptRecord("translation", "Translation", PROMPT_TRANSLATION),
]


def resolve_question_count(raw_value: Optional[object]) -> int:
    """Return a positive question count, falling back to the default.

    Absent, zero, negative, non-numeric and non-finite values all map to
    ``DEFAULT_QUESTION_COUNT``. Values above ``MAX_QUESTION_COUNT`` are capped.
    """
    if isinstance(raw_value, bool):
        return DEFAULT_QUESTION_COUNT
    try:
        value = int(raw_value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_QUESTION_COUNT
    if value <= 0:
        return DEFAULT_QUESTION_COUNT
    return min(value, MAX_QUESTION_COUNT)


def build_chapter_prompt(syllabus_text: str, num_questions: Optional[int] = None) -> str:
    return PROMPT_CHAPTER_BREAKDOWN.format(
        num_questions=resolve_question_count(num_questions),
        syllabus_text=syllabus_text or "",
    )


def build_quiz_prompt(chapter_title: str, chapter_explanation: str, num_questions: int, existing_questions: Optional[List[str]] = None) -> str:
    existing = [str(item).strip() for item in (existing_questions or []) if str(item).strip()]
    return PROMPT_QUIZ_REGENERATION.format(
        num_questions=resolve_question_count(num_questions),
        existing_questions="\n".join(f"- {item}" for item in existing) or "- (none)",
        chapter_title=chapter_title or "",
        chapter_explanation=chapter_explanation or "",
    )


def build_subtopic_prompt(subtopic_name: str, syllabus_text: str) -> str:
    return PROMPT_SUBTOPIC_EXPLANATION.format(subtopic_name=subtopic_name or "", syllabus_text=syllabus_text or "")


def build_knowledge_tree_prompt(syllabus_text: str) -> str:
    return PROMPT_KNOWLEDGE_TREE.format(syllabus_text=syllabus_text or "")


def build_translation_prompt(text: str, target_lang: str) -> str:
    return PROMPT_TRANSLATION.format(text=text or "", target_lang=target_lang or "")


def get_prompt_inventory() -> List[Dict[str, str]]:
    return [
        {
            "id": record.prompt_id,
            "name": record.name,
            "version": PROMPT_REGISTRY_VERSION,
            "template": record.template,
        }
        for record in PROMPT_RECORDS
    ]


def get_prompt_template(prompt_id: str) -> str:
    safe_id = str(prompt_id or "").strip()
    for record in PROMPT_RECORDS:
        if record.prompt_id == safe_id:
            return record.template
    raise KeyError(f"Unknown prompt id: {safe_id}")


def get_prompt_metadata() -> Dict[str, object]:
    return {
        "version": PROMPT_REGISTRY_VERSION,
        "count": len(PROMPT_RECORDS),
        "ids": [record.prompt_id for record in PROMPT_RECORDS],
    }
