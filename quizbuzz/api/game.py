from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from quizbuzz.services.game.errors import GameError, UnknownBatch
from quizbuzz.services.game.pool import ORIGIN_SHEET, ORIGINS


game = Blueprint('game', __name__)


def _coordinator():
    return current_app.extensions['quizbuzz']


def _clean_questions(raw):
    """Validate pre-parsed pairs; accepts ``prompt`` or ``question`` keys.

    Returns ``(questions, error)``; rows without a prompt are dropped.
    """
    if not isinstance(raw, list):
        return None, 'questions must be a list'
    questions = []
    for row in raw:
        if not isinstance(row, dict):
            return None, 'each question must be an object'
        prompt = row.get('prompt', row.get('question'))
        answer = row.get('answer')
        prompt = str(prompt).strip() if prompt is not None else ''
        answer = str(answer).strip() if answer is not None else ''
        if prompt:
            questions.append({'prompt': prompt, 'answer': answer})
    return questions, None


@game.route('/state', methods=['GET'])
def get_game_state():
    return jsonify(_coordinator().snapshot())


@game.route('/batches', methods=['GET'])
@login_required
def list_batches():
    return jsonify(_coordinator().list_batches())


@game.route('/batches', methods=['POST'])
@login_required
def import_batch():
    """
    Accepts a batch of already-parsed question/answer pairs and merges it
    into the live pool.
    """
    data = request.get_json(silent=True) or {}
    origin = data.get('origin') or ORIGIN_SHEET
    if origin not in ORIGINS:
        return jsonify({'error': f"origin must be one of {', '.join(ORIGINS)}"}), 400
    source = (data.get('source') or '').strip() or ('Google Sheets' if origin == ORIGIN_SHEET else 'Upload')

    questions, error = _clean_questions(data.get('questions'))
    if error:
        return jsonify({'error': error}), 400

    try:
        batch = _coordinator().import_batch(source, origin, questions)
    except GameError as exc:
        return jsonify({'error': exc.message, 'code': exc.code}), 400

    return jsonify({'id': batch.id, 'source': batch.source, 'count': batch.count}), 201


@game.route('/batches/<int:batch_id>', methods=['DELETE'])
@login_required
def delete_batch(batch_id):
    try:
        _coordinator().delete_batch(batch_id)
    except UnknownBatch as exc:
        return jsonify({'error': exc.message, 'code': exc.code}), 404
    return jsonify({'message': 'Question batch deleted'})
