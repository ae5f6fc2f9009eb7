from flask import Blueprint, jsonify

from study_companion.errors import ConfigurationError, InvalidRequestError
from study_companion.extensions import get_extension
from study_companion.services import translation_service

from .generation import json_payload

translation_bp = Blueprint('translation_api', __name__)

MAX_CHAPTERS_PER_TRANSLATION = 30


def target_language(payload):
    target_lang = str(payload.get('targetLang', '') or '').strip()[:64]
    if not target_lang:
        raise InvalidRequestError('targetLang is required')
    return target_lang


@translation_bp.route('/translate', methods=['POST'])
@translation_bp.route('/api/translate', methods=['POST'])
def translate():
    payload = json_payload()
    target_lang = target_language(payload)
    generation_client = get_extension('generation_client')
    if not generation_client.configured:
        raise ConfigurationError('Gemini API key not set')
    translated = translation_service.translate_text(
        payload.get('text', ''),
        target_lang,
        generation_client=generation_client,
    )
    return jsonify({'translatedText': translated})


@translation_bp.route('/translate-chapters', methods=['POST'])
@translation_bp.route('/api/translate-chapters', methods=['POST'])
def translate_chapters():
    payload = json_payload()
    target_lang = target_language(payload)
    chapters = payload.get('chapters')
    if not isinstance(chapters, list) or not all(isinstance(chapter, dict) for chapter in chapters):
        raise InvalidRequestError('chapters must be a list of objects')
    if len(chapters) > MAX_CHAPTERS_PER_TRANSLATION:
        raise InvalidRequestError(f'At most {MAX_CHAPTERS_PER_TRANSLATION} chapters can be translated at once')
    translated = translation_service.translate_chapters(
        chapters,
        target_lang,
        generation_client=get_extension('generation_client'),
        cache=get_extension('translation_cache'),
        batch_key=str(payload.get('batchId', '') or '').strip()[:128] or None,
    )
    return jsonify({'chapters': translated})
