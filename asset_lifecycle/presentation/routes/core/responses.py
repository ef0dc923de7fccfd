from flask import jsonify


def success(data, status: int = 200):
    return jsonify({'success': True, 'data': data}), status
