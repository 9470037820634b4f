# api/ai_routes.py
from flask import Blueprint, request
from sqlalchemy.exc import OperationalError
from services.db_config import db, retry_on_connection_error
from services.storage import rows_to_dicts
from services.ai_postprocess import GeneratedEventError
from services.schedule_assistant import TemplateNotFoundError
from api.auth_routes import token_required
from api.extensions import get_assistant, get_storage
from api.responses import success_response, error_response
import logging

logger = logging.getLogger(__name__)
ai_api = Blueprint('ai_api', __name__)


def _required_text(data, key):
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


# --------------------- Conversation history ---------------------

@ai_api.route('/conversations', methods=['GET'])
@token_required
@retry_on_connection_error
def get_conversations(current_user):
    try:
        turns = get_storage().get_conversations(current_user.id)
        return success_response(rows_to_dicts(turns))
    except OperationalError:  # retried by retry_on_connection_error
        raise
    except Exception as e:
        logger.error(f"Error fetching conversations: {str(e)}")
        return error_response("Failed to fetch conversations", 500)


@ai_api.route('/conversations', methods=['DELETE'])
@token_required
def clear_conversations(current_user):
    try:
        get_storage().delete_conversations(current_user.id)
        return success_response({"success": True})
    except Exception as e:
        logger.error(f"Error clearing conversations: {str(e)}")
        db.session.rollback()
        return error_response("Failed to clear conversations", 500)


# --------------------- Generation (replaces all events) ---------------------

@ai_api.route('/generate', methods=['POST'])
@token_required
def generate_schedule(current_user):
    data = request.get_json(silent=True) or {}
    prompt = _required_text(data, 'prompt')
    if not prompt:
        return error_response("Prompt is required", 400)

    try:
        result = get_assistant().generate(current_user.id, prompt)
        return success_response({"success": True, "reply": result.reply})
    except GeneratedEventError as e:
        logger.error(f"Generated schedule rejected: {str(e)}")
        return error_response(str(e), 500)
    except Exception as e:
        logger.exception(f"Error generating schedule: {str(e)}")
        db.session.rollback()
        return error_response("Failed to generate schedule", 500)


@ai_api.route('/apply-template', methods=['POST'])
@token_required
def apply_template(current_user):
    data = request.get_json(silent=True) or {}
    template_id = _required_text(data, 'templateId')
    if not template_id:
        return error_response("Template ID is required", 400)

    try:
        result = get_assistant().generate_from_template(current_user.id, template_id)
        return success_response({"success": True, "reply": result.reply})
    except TemplateNotFoundError as e:
        return error_response(str(e), 404)
    except GeneratedEventError as e:
        logger.error(f"Template schedule rejected: {str(e)}")
        return error_response(str(e), 500)
    except Exception as e:
        logger.exception(f"Error applying template: {str(e)}")
        db.session.rollback()
        return error_response("Failed to apply template", 500)


@ai_api.route('/modify', methods=['POST'])
@token_required
def modify_schedule(current_user):
    data = request.get_json(silent=True) or {}
    modification = _required_text(data, 'modification')
    if not modification:
        return error_response("Modification is required", 400)

    try:
        result = get_assistant().modify(current_user.id, modification)
        return success_response({"success": True, "reply": result.reply})
    except GeneratedEventError as e:
        logger.error(f"Modified schedule rejected: {str(e)}")
        return error_response(str(e), 500)
    except Exception as e:
        logger.exception(f"Error modifying schedule: {str(e)}")
        db.session.rollback()
        return error_response("Failed to modify schedule", 500)
