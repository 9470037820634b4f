# api/calendar_routes.py
from flask import Blueprint, request
from sqlalchemy.exc import OperationalError
from services.db_config import db, retry_on_connection_error
from services.storage import rows_to_dicts
from services.timeutils import parse_timestamp
from models.calendar import EVENT_COLORS, DEFAULT_EVENT_COLOR
from api.auth_routes import token_required
from api.extensions import get_storage
from api.responses import success_response, error_response
import logging

logger = logging.getLogger(__name__)
calendar_api = Blueprint('calendar_api', __name__)


# --- Payload validation (camelCase JSON -> snake_case columns) ---
def _parse_event_payload(data, partial=False):
    """Raise ValueError with a client-facing message on bad input.

    endTime before startTime is accepted; no ordering check is made.
    """
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")

    out = {}
    if 'title' in data or not partial:
        title = data.get('title')
        if not isinstance(title, str) or not title.strip():
            raise ValueError("Event title is required")
        out['title'] = title.strip()

    for key, column in (('startTime', 'start_time'), ('endTime', 'end_time')):
        if key in data or not partial:
            if data.get(key) is None:
                raise ValueError(f"{key} is required")
            try:
                out[column] = parse_timestamp(data[key])
            except ValueError:
                raise ValueError(f"{key} must be a valid timestamp")

    if 'description' in data:
        description = data['description']
        if description is not None and not isinstance(description, str):
            raise ValueError("description must be a string")
        out['description'] = description

    if 'color' in data and not (data['color'] is None and not partial):
        if data['color'] not in EVENT_COLORS:
            raise ValueError(f"color must be one of {', '.join(EVENT_COLORS)}")
        out['color'] = data['color']
    elif not partial:
        out['color'] = DEFAULT_EVENT_COLOR

    if 'isAllDay' in data:
        if not isinstance(data['isAllDay'], bool):
            raise ValueError("isAllDay must be a boolean")
        out['is_all_day'] = data['isAllDay']

    return out


def _parse_range_arg(name):
    value = request.args.get(name)
    if not value:
        return None
    return parse_timestamp(value)


# --------------------- Event endpoints ---------------------

@calendar_api.route('/events', methods=['GET'])
@token_required
@retry_on_connection_error
def get_events(current_user):
    """Events intersecting the optional startDate/endDate range"""
    try:
        start = _parse_range_arg('startDate')
        end = _parse_range_arg('endDate')
    except ValueError:
        return error_response("startDate and endDate must be valid timestamps", 400)

    try:
        events = get_storage().get_events(current_user.id, start, end)
        return success_response(rows_to_dicts(events))
    except OperationalError:  # retried by retry_on_connection_error
        raise
    except Exception as e:
        logger.error(f"Error in get_events: {str(e)}")
        return error_response("Failed to fetch events", 500)


@calendar_api.route('/events/<event_id>', methods=['GET'])
@token_required
@retry_on_connection_error
def get_event(current_user, event_id):
    event = get_storage().get_event(event_id, current_user.id)
    if not event:
        return error_response("Event not found", 404)
    return success_response(event.to_dict())


@calendar_api.route('/events', methods=['POST'])
@token_required
@retry_on_connection_error
def create_event(current_user):
    try:
        fields = _parse_event_payload(request.get_json(silent=True))
    except ValueError as ve:
        return error_response(str(ve), 400)

    try:
        event = get_storage().create_event({**fields, 'user_id': current_user.id})
        return success_response(event.to_dict(), 201)
    except OperationalError:
        raise
    except Exception as e:
        logger.error(f"Error in create_event: {str(e)}")
        db.session.rollback()
        return error_response("Failed to create event", 500)


@calendar_api.route('/events/<event_id>', methods=['PATCH'])
@token_required
@retry_on_connection_error
def update_event(current_user, event_id):
    try:
        fields = _parse_event_payload(request.get_json(silent=True), partial=True)
    except ValueError as ve:
        return error_response(str(ve), 400)

    try:
        event = get_storage().update_event(event_id, current_user.id, fields)
        if not event:
            return error_response("Event not found", 404)
        return success_response(event.to_dict())
    except OperationalError:
        raise
    except Exception as e:
        logger.error(f"Error in update_event: {str(e)}")
        db.session.rollback()
        return error_response("Failed to update event", 500)


@calendar_api.route('/events/<event_id>', methods=['DELETE'])
@token_required
@retry_on_connection_error
def delete_event(current_user, event_id):
    try:
        if not get_storage().delete_event(event_id, current_user.id):
            return error_response("Event not found", 404)
        return success_response({"success": True})
    except OperationalError:
        raise
    except Exception as e:
        logger.error(f"Error in delete_event: {str(e)}")
        db.session.rollback()
        return error_response("Failed to delete event", 500)
