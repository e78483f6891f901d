# Overview: Request decorators for the stand-in API routes.

from functools import wraps

from flask import g, jsonify, request

from .state import get_state


def require_auth(f):
    """
    Require a bearer token and establish tenant context.

    Sets g.current_user and g.tenant_id. An X-Tenant-ID header that disagrees
    with the token's user is rejected with 403.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"message": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        user = get_state().user_for_access_token(token)
        if user is None:
            return jsonify({"message": "Invalid or expired token"}), 401

        header_tenant = request.headers.get("X-Tenant-ID")
        if header_tenant and header_tenant != user.tenant_id:
            return jsonify({"message": "Cross-tenant access denied"}), 403

        g.current_user = user
        g.access_token = token
        g.tenant_id = user.tenant_id
        return f(*args, **kwargs)

    return decorated_function


def require_tenant(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.tenant_id:
            return jsonify({"message": "A tenant session is required"}), 403
        return f(*args, **kwargs)

    return decorated_function
