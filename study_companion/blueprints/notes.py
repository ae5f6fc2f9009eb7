from flask import Blueprint, jsonify, request

from study_companion.extensions import current_user, require_db
from study_companion.services import notes_service

from .generation import json_payload

notes_bp = Blueprint('notes_api', __name__)


@notes_bp.route('/api/notes', methods=['GET'])
def list_notes():
    decoded_token = current_user()
    notes = notes_service.list_notes(
        decoded_token,
        request.args.get('q', ''),
        request.args.get('chatId', ''),
        db=require_db(),
    )
    return jsonify({'notes': notes})


@notes_bp.route('/api/notes', methods=['POST'])
def create_note():
    decoded_token = current_user()
    note = notes_service.create_note(json_payload(), decoded_token, db=require_db())
    return jsonify({'note': note}), 201


@notes_bp.route('/api/notes/<note_id>', methods=['PATCH'])
def update_note(note_id):
    decoded_token = current_user()
    note = notes_service.update_note(note_id, json_payload(), decoded_token, db=require_db())
    return jsonify({'note': note})


@notes_bp.route('/api/notes/<note_id>', methods=['DELETE'])
def delete_note(note_id):
    decoded_token = current_user()
    notes_service.delete_note(note_id, decoded_token, db=require_db())
    return jsonify({'deleted': True})
