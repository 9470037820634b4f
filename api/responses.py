# api/responses.py
from flask import jsonify


def success_response(data=None, status_code=200):
    """Resources are returned bare; the client reads them directly."""
    return jsonify(data if data is not None else {"success": True}), status_code


def error_response(message, status_code=400):
    return jsonify({"success": False, "message": message}), status_code
