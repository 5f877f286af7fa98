# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

ACTOR_HEADER = "X-Actor-Id"


def require_actor(f):
    """
    Require an actor id on the request and expose it as g.actor_id.

    The id comes from an upstream identity layer; whether that actor may
    perform the mutation is decided by the service via the injected
    authorizer (403), not here (401 only when the id is missing).
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor_id = (request.headers.get(ACTOR_HEADER) or "").strip()
        if not actor_id:
            return jsonify({"error": "Authentication required", "code": "not_authenticated"}), 401

        g.actor_id = actor_id
        return f(*args, **kwargs)

    return decorated_function
