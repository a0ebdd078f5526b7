# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/auth/login   issue a bearer token
- POST /api/auth/logout  revoke the presented token
- GET  /api/auth/me      identity, roles and permissions
"""

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..errors import INVALID_JSON_BODY, STORE_FAILURE_BODY
from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    Failed attempts are recorded as LOGIN_FAILED security events.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(INVALID_JSON_BODY), 400
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return jsonify({"error": "username and password required", "kind": "validation_error"}), 400

    user_agent = request.headers.get("User-Agent")
    ip_address = request.remote_addr

    try:
        user = auth_service.authenticate(username, password)

        if not user:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                reason=f"Invalid credentials for '{username}'",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials", "kind": "unauthenticated"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )
        permissions = sorted(permission_service.get_user_permissions(user.id))

        return jsonify({
            "user": user.to_dict(),
            "roles": permission_service.get_user_role_names(user.id),
            "permissions": permissions,
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except SQLAlchemyError:
        current_app.logger.exception("Failed to login user")
        return jsonify(STORE_FAILURE_BODY), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    token = request.headers.get("Authorization", "").split(" ", 1)[1]
    session_service.revoke_session(token)
    permission_service.log_security_event(
        user_id=g.current_user.id,
        event_type="LOGOUT",
        success=True,
        resource=request.path,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "roles": permission_service.get_user_role_names(user.id),
        "permissions": sorted(permission_service.get_user_permissions(user.id)),
    })
