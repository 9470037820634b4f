# api/template_routes.py
from flask import Blueprint, request
from sqlalchemy.exc import OperationalError
from services.db_config import db, retry_on_connection_error
from services.storage import rows_to_dicts
from api.auth_routes import token_required
from api.extensions import get_storage
from api.responses import success_response, error_response
import logging

logger = logging.getLogger(__name__)
templates_api = Blueprint('templates_api', __name__)


@templates_api.route('/templates', methods=['GET'])
@retry_on_connection_error
def get_templates():
    """Default scenario templates; no login needed"""
    try:
        return success_response(rows_to_dicts(get_storage().get_templates()))
    except OperationalError:  # retried by retry_on_connection_error
        raise
    except Exception as e:
        logger.error(f"Error fetching templates: {str(e)}")
        return error_response("Failed to fetch templates", 500)


@templates_api.route('/templates', methods=['POST'])
@token_required
def create_template(current_user):
    data = request.get_json(silent=True) or {}
    fields = {}
    for key in ('name', 'description', 'prompt'):
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            return error_response(f"{key} is required", 400)
        fields[key] = value.strip()
    if len(fields['name']) > 100:
        return error_response("name must be at most 100 characters", 400)

    icon = data.get('icon')
    if icon is not None and (not isinstance(icon, str) or len(icon) > 50):
        return error_response("icon must be a string of at most 50 characters", 400)
    fields['icon'] = icon
    fields['is_default'] = bool(data.get('isDefault', True))

    try:
        template = get_storage().create_template(fields)
        return success_response(template.to_dict(), 201)
    except Exception as e:
        logger.error(f"Error creating template: {str(e)}")
        db.session.rollback()
        return error_response("Failed to create template", 500)
