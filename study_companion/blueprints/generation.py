from flask import Blueprint, jsonify, request

from study_companion.errors import InvalidRequestError, NotFoundError
from study_companion.extensions import get_extension
from study_companion.services import knowledge_service, pipeline_service, quiz_service
from study_companion.services.syllabus_service import sanitize_syllabus_text

generation_bp = Blueprint('generation_api', __name__)


def json_payload():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        raise InvalidRequestError('Invalid payload')
    return payload


@generation_bp.route('/explain-subtopic', methods=['POST'])
@generation_bp.route('/api/explain-subtopic', methods=['POST'])
def explain_subtopic():
    payload = json_payload()
    subtopic_name = str(payload.get('subtopicName', '') or '').strip()
    if not subtopic_name:
        raise InvalidRequestError('subtopicName is required')
    explanation = knowledge_service.explain_subtopic(
        subtopic_name,
        str(payload.get('syllabusContent', '') or ''),
        generation_client=get_extension('generation_client'),
    )
    return jsonify({'explanation': explanation})


@generation_bp.route('/generate-knowledge-tree', methods=['POST'])
@generation_bp.route('/api/generate-knowledge-tree', methods=['POST'])
def generate_knowledge_tree():
    payload = json_payload()
    syllabus_text = sanitize_syllabus_text(payload.get('syllabusContent'))
    if str(payload.get('format', '') or '').strip().lower() == 'tree':
        tree = knowledge_service.generate_knowledge_tree(
            syllabus_text,
            generation_client=get_extension('generation_client'),
        )
        return jsonify({'knowledgeTree': tree})
    result = pipeline_service.generate_chapters(
        syllabus_text,
        payload.get('numQuestions'),
        generation_client=get_extension('generation_client'),
        video_client=get_extension('video_client'),
    )
    return jsonify({'chapters': result.chapters})


@generation_bp.route('/regenerate-quiz', methods=['POST'])
@generation_bp.route('/api/regenerate-quiz', methods=['POST'])
def regenerate_quiz():
    payload = json_payload()
    chapters = payload.get('chapters')
    if chapters is not None:
        if not isinstance(chapters, list):
            raise InvalidRequestError('chapters must be a list')
        chapter = quiz_service.find_chapter(chapters, payload.get('chapterKey'))
        if chapter is None:
            raise NotFoundError('Chapter not found')
    else:
        chapter = payload.get('chapter')
        if not isinstance(chapter, dict):
            raise InvalidRequestError('chapter must be an object')
    questions = quiz_service.regenerate_quiz(
        chapter,
        payload.get('numQuestions'),
        generation_client=get_extension('generation_client'),
    )
    if chapters is not None:
        return jsonify({'chapters': quiz_service.replace_chapter_quiz(chapters, payload.get('chapterKey'), questions)})
    return jsonify({'practiceQuestions': questions})
