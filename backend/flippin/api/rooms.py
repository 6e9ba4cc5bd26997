from flask import Blueprint, current_app, jsonify

rooms = Blueprint('rooms', __name__)


def _registry():
    return current_app.extensions['room_registry']


@rooms.route('', methods=['GET'])
def list_rooms():
    return jsonify(_registry().summaries())


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room_state(room_id):
    room = _registry().get(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    with room.lock:
        return jsonify(room.snapshot())
