# api/auth_routes.py
from flask import Blueprint, current_app, request
from services.db_config import db
from api.extensions import get_storage
from api.responses import success_response, error_response
from functools import wraps
import logging
import jwt

logger = logging.getLogger(__name__)
auth = Blueprint('auth', __name__)


def _read_token():
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(current_app.config['AUTH_COOKIE_NAME'])


# ---- Auth decorator: the identity provider's "sub" claim is the user id ----
def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _read_token()
        if not token:
            return error_response('Unauthorized', 401)
        try:
            claims = jwt.decode(
                token,
                current_app.config['AUTH_JWT_SECRET'],
                algorithms=[current_app.config['AUTH_JWT_ALGORITHM']],
                options={"verify_aud": False},
            )
        except jwt.InvalidTokenError as e:
            logger.info(f"Token validation error: {str(e)}")
            return error_response('Unauthorized', 401)
        if not claims.get('sub'):
            return error_response('Unauthorized', 401)

        try:
            user = get_storage().upsert_user(claims)
        except Exception as e:
            logger.error(f"User upsert error: {str(e)}")
            db.session.rollback()
            return error_response('Failed to fetch user', 500)
        return f(user, *args, **kwargs)
    return decorated


# ---- Endpoints ----
@auth.route('/user', methods=['GET'])
@token_required
def get_current_user(current_user):
    return success_response(current_user.to_dict())
