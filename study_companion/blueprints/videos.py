from flask import Blueprint, jsonify

from study_companion.errors import InvalidRequestError
from study_companion.extensions import get_extension
from study_companion.services import video_service

from .generation import json_payload

videos_bp = Blueprint('videos_api', __name__)


@videos_bp.route('/youtube-suggestions', methods=['POST'])
@videos_bp.route('/api/youtube-suggestions', methods=['POST'])
def youtube_suggestions():
    payload = json_payload()
    subtopic_name = str(payload.get('subtopicName', '') or '').strip()
    if not subtopic_name:
        raise InvalidRequestError('subtopicName is required')
    videos = video_service.suggest_videos(subtopic_name, get_extension('video_client'))
    return jsonify({'videos': videos})
