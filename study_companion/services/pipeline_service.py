"""Syllabus to chapter-list generation pipeline."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from study_companion.errors import ConfigurationError, GenerationError
from study_companion.logging_config import log_event
from study_companion.services import prompt_registry, quiz_service, response_normalizer, video_service

logger = logging.getLogger('study_companion.pipeline')


class PipelineState(str, Enum):
    IDLE = 'idle'
    BUILDING_PROMPT = 'building_prompt'
    AWAITING_GENERATION = 'awaiting_generation'
    NORMALIZING = 'normalizing'
    ENFORCING_QUIZ_COUNT = 'enforcing_quiz_count'
    ENRICHING_VIDEOS = 'enriching_videos'
    COMPLETE = 'complete'
    FAILED = 'failed'


@dataclass
class GenerationResult:
    chapters: List[Dict[str, Any]] = field(default_factory=list)
    state: PipelineState = PipelineState.IDLE
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    used_fallback: bool = False
    failure_reason: Optional[str] = None

    def advance(self, state):
        self.state = state
        self.history.append(state)


def generate_chapters(syllabus_text, num_questions=None, *, generation_client, video_client):
    """Run one generation request end to end.

    Only configuration errors escape. A failed generation call is recorded as
    ``FAILED`` and the batch is completed from fallback chapters.
    """
    started_at = time.time()
    question_count = prompt_registry.resolve_question_count(num_questions)
    result = GenerationResult()

    result.advance(PipelineState.BUILDING_PROMPT)
    if not generation_client.configured:
        raise ConfigurationError('Gemini API key not set')
    video_client.require_configured()
    prompt = prompt_registry.build_chapter_prompt(syllabus_text, question_count)

    result.advance(PipelineState.AWAITING_GENERATION)
    raw_text = None
    try:
        raw_text = generation_client.generate_text(prompt)
    except GenerationError as exc:
        result.failure_reason = str(exc)
        result.advance(PipelineState.FAILED)
        logger.warning(f"Chapter generation failed, using fallback chapters: {exc}")

    result.advance(PipelineState.NORMALIZING)
    chapters, fallback_reason = response_normalizer.normalize_chapters(raw_text, syllabus_text)
    if fallback_reason is not None:
        result.used_fallback = True
        if result.failure_reason is None:
            logger.info(f"Generation output unusable ({fallback_reason}); using fallback chapters")

    result.advance(PipelineState.ENFORCING_QUIZ_COUNT)
    quiz_service.enforce_question_count(chapters, question_count)

    result.advance(PipelineState.ENRICHING_VIDEOS)
    video_service.enrich_chapters(chapters, video_client)

    result.chapters = chapters
    result.advance(PipelineState.COMPLETE)
    log_event(
        logger,
        logging.INFO,
        'chapters_generated',
        chapter_count=len(chapters),
        question_count=question_count,
        used_fallback=result.used_fallback,
        video_count=sum(len(chapter.get('youtubeVideos', [])) for chapter in chapters),
        duration_ms=int((time.time() - started_at) * 1000),
    )
    return result
