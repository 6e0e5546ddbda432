"""Note route handlers."""
from flask import current_app, jsonify, request

from row_store import RowStore, StoreWriteError

COLLECTION = 'notes'


def list_notes():
    return jsonify(RowStore().list(COLLECTION, order_by=['-created_at']))


def create_note():
    data = request.get_json(silent=True) or {}
    content = (data.get('content') or '').strip()
    if not content:
        return jsonify({'error': 'content is required'}), 400
    try:
        note = RowStore().insert(COLLECTION, {'content': content})
    except StoreWriteError as exc:
        current_app.logger.error("Error creating note: %s", exc)
        return jsonify({'error': 'Failed to create note'}), 500
    return jsonify(note), 201


def handle_note(note_id):
    store = RowStore()
    if request.method == 'DELETE':
        try:
            removed = store.delete(COLLECTION, note_id)
        except StoreWriteError as exc:
            current_app.logger.error("Error deleting note %s: %s", note_id, exc)
            return jsonify({'error': 'Failed to delete note'}), 500
        if not removed:
            return jsonify({'error': 'Note not found'}), 404
        return jsonify({'success': True})

    data = request.get_json(silent=True) or {}
    content = (data.get('content') or '').strip()
    if not content:
        return jsonify({'error': 'content is required'}), 400
    try:
        note = store.update(COLLECTION, note_id, {'content': content})
    except StoreWriteError as exc:
        current_app.logger.error("Error updating note %s: %s", note_id, exc)
        return jsonify({'error': 'Failed to update note'}), 500
    if note is None:
        return jsonify({'error': 'Note not found'}), 404
    return jsonify(note)
