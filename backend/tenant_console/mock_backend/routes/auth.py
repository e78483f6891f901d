# Overview: Stand-in auth routes (login, logout, refresh, impersonation exchange).

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..state import get_state


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        if not all([email, password]):
            return jsonify({"message": "email and password required"}), 400

        user = get_state().authenticate(email, password)
        if user is None:
            return jsonify({"message": "Invalid credentials. Please try again."}), 401

        return jsonify(get_state().issue_session(user)), 200
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    get_state().revoke(g.access_token)
    return "", 204


@auth_bp.post("/refresh")
def refresh_route():
    data = request.get_json(silent=True) or {}
    refresh_token = data.get("refreshToken")
    if not refresh_token:
        return jsonify({"message": "refreshToken required"}), 400

    access_token = get_state().refresh(refresh_token)
    if access_token is None:
        return jsonify({"message": "Invalid refresh token"}), 401
    return jsonify({"accessToken": access_token}), 200


@auth_bp.post("/impersonate")
def impersonate_route():
    """
    Exchange a single-use impersonation token for a tenant user session.

    The token is consumed on first presentation; a second exchange with the
    same token is rejected.
    """
    try:
        data = request.get_json(silent=True) or {}
        token = data.get("token")
        if not token:
            return jsonify({"message": "token required"}), 400

        user = get_state().consume_impersonation_token(token)
        if user is None:
            return jsonify({"message": "Impersonation token is invalid or expired"}), 401

        current_app.logger.info("Issued impersonated session for %s", user.email)
        return jsonify(get_state().issue_session(user)), 200
    except Exception:
        current_app.logger.exception("Failed to exchange impersonation token")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify(g.current_user.to_dict()), 200
