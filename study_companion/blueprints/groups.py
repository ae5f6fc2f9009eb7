import uuid

from flask import Blueprint, jsonify

from study_companion.extensions import current_user, get_extension, require_db
from study_companion.services import group_service

from .generation import json_payload

groups_bp = Blueprint('groups_api', __name__)


@groups_bp.route('/api/groups', methods=['GET'])
def list_groups():
    current_user()
    return jsonify({'groups': group_service.list_groups(db=require_db())})


@groups_bp.route('/api/groups', methods=['POST'])
def create_group():
    decoded_token = current_user()
    payload = json_payload()
    group = group_service.create_group(payload.get('name'), payload.get('description'), decoded_token, db=require_db())
    return jsonify({'group': group}), 201


@groups_bp.route('/api/groups/<group_id>/join', methods=['POST'])
def join_group(group_id):
    decoded_token = current_user()
    group = group_service.join_group(group_id, decoded_token, db=require_db())
    return jsonify({'group': group})


@groups_bp.route('/api/groups/<group_id>/invites', methods=['POST'])
def invite_members(group_id):
    decoded_token = current_user()
    payload = json_payload()
    invited = group_service.invite_members(group_id, payload.get('emails'), decoded_token, db=require_db())
    return jsonify({'invited': invited})


@groups_bp.route('/api/groups/<group_id>/messages', methods=['GET'])
def list_messages(group_id):
    decoded_token = current_user()
    return jsonify({'messages': group_service.list_messages(group_id, decoded_token, db=require_db())})


@groups_bp.route('/api/groups/<group_id>/messages', methods=['POST'])
def post_message(group_id):
    decoded_token = current_user()
    payload = json_payload()
    message = group_service.post_message(group_id, payload.get('content'), decoded_token, db=require_db())
    return jsonify({'message': message}), 201


@groups_bp.route('/api/groups/<group_id>/breakdowns', methods=['GET'])
def list_breakdowns(group_id):
    decoded_token = current_user()
    breakdowns = group_service.list_group_breakdowns(
        group_id,
        decoded_token,
        db=require_db(),
        tracker=get_extension('pending_breakdowns'),
    )
    return jsonify({'breakdowns': breakdowns})


@groups_bp.route('/api/groups/<group_id>/breakdowns', methods=['POST'])
def create_breakdown(group_id):
    decoded_token = current_user()
    payload = json_payload()
    breakdown = group_service.create_group_breakdown(
        group_id,
        payload.get('topic'),
        decoded_token,
        payload.get('numQuestions'),
        payload.get('correlationId'),
        db=require_db(),
        generation_client=get_extension('generation_client'),
        video_client=get_extension('video_client'),
        tracker=get_extension('pending_breakdowns'),
        id_factory=lambda: uuid.uuid4().hex,
    )
    return jsonify({'breakdown': breakdown}), 201
