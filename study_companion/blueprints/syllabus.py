from flask import Blueprint, jsonify, request

from study_companion.extensions import current_user, get_extension, require_db
from study_companion.services import pipeline_service, syllabus_service, upload_service

from .generation import json_payload

syllabus_bp = Blueprint('syllabus_api', __name__)


@syllabus_bp.route('/api/syllabuses', methods=['GET'])
def list_syllabuses():
    decoded_token = current_user()
    return jsonify({'syllabuses': syllabus_service.list_syllabuses(decoded_token, db=require_db())})


@syllabus_bp.route('/api/syllabuses', methods=['POST'])
def create_syllabus():
    decoded_token = current_user()
    payload = json_payload()
    syllabus = syllabus_service.save_syllabus(
        payload.get('syllabusContent'),
        payload.get('title'),
        decoded_token,
        db=require_db(),
    )
    return jsonify({'syllabus': syllabus}), 201


@syllabus_bp.route('/api/syllabuses/upload', methods=['POST'])
def upload_syllabus():
    decoded_token = current_user()
    db = require_db()
    safe_name, text = upload_service.extract_syllabus_upload(request.files.get('file'))
    title = request.form.get('title', '') or safe_name.rsplit('.', 1)[0]
    syllabus = syllabus_service.save_syllabus(text, title, decoded_token, db=db)
    return jsonify({'syllabus': syllabus}), 201


@syllabus_bp.route('/extract-syllabus-text', methods=['POST'])
@syllabus_bp.route('/api/extract-syllabus-text', methods=['POST'])
def extract_syllabus_text():
    safe_name, text = upload_service.extract_syllabus_upload(request.files.get('file'))
    return jsonify({'filename': safe_name, 'syllabusContent': text})


@syllabus_bp.route('/api/breakdowns', methods=['GET'])
def list_breakdowns():
    decoded_token = current_user()
    return jsonify({'breakdowns': syllabus_service.list_breakdowns(decoded_token, db=require_db())})


@syllabus_bp.route('/api/breakdowns', methods=['POST'])
def create_breakdown():
    decoded_token = current_user()
    payload = json_payload()
    db = require_db()
    syllabus_id = str(payload.get('syllabusId', '') or '').strip()
    if syllabus_id:
        syllabus = syllabus_service.get_syllabus(syllabus_id, decoded_token, db=db)
        syllabus_text = syllabus_service.sanitize_syllabus_text(syllabus.get('content'))
        topic = payload.get('topic') or syllabus.get('title')
    else:
        syllabus_text = syllabus_service.sanitize_syllabus_text(payload.get('syllabusContent'))
        topic = payload.get('topic') or syllabus_service.default_title(syllabus_text)
    result = pipeline_service.generate_chapters(
        syllabus_text,
        payload.get('numQuestions'),
        generation_client=get_extension('generation_client'),
        video_client=get_extension('video_client'),
    )
    breakdown = syllabus_service.save_breakdown(result.chapters, topic, decoded_token, syllabus_id, db=db)
    return jsonify({'breakdown': breakdown}), 201
