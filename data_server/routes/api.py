"""
REST API endpoints for the shared user list.

All endpoints exchange JSON.  Every handler loads the list fresh from
the data file and every mutating handler flushes the full list before
responding.

Endpoints:
    GET    /health                  - Health check
    POST   /save-user               - Upsert a user by username
    PUT    /update-user/<username>  - Merge fields into an existing user
    GET    /users                   - List all users
    GET    /users/<username>        - Get a single user
    GET    /users/status/<status>   - List users whose step equals status
    GET    /stats                   - Presence-based counters
    DELETE /users                   - Remove every user
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from data_server.storage import UserFile
from userstore.models import (
    USER_NOT_FOUND,
    compute_stats,
    filter_by_step,
    find_index,
    has_username,
    merge_record,
    upsert_record,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def user_file() -> UserFile:
    """Return the data file configured for the current app."""
    return UserFile(current_app.config["DATA_FILE"])


def read_json_object() -> dict | None:
    """Return the request body if it is a JSON object, else None."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return None


# -----------------------------------------------------------------------------
# API Endpoints
# -----------------------------------------------------------------------------

@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Health check endpoint used by the remote store on initialize."""
    users = user_file().load()
    return jsonify({
        "status": "healthy",
        "service": "data-server",
        "users": len(users),
    }), 200


@api_bp.route("/save-user", methods=["POST"])
def save_user() -> tuple[Response, int]:
    """
    Insert a user, or merge into the existing user with the same username.

    Request Body (JSON):
        username: Record key (required)
        any other user-record fields (optional)

    Returns:
        JSON ``{success, total}`` and 200, or an error and 400.
    """
    data = read_json_object()
    if data is None:
        return jsonify({"error": "Request body must be a JSON object"}), 400

    if not has_username(data):
        return jsonify({"error": "'username' is required"}), 400

    logger.info(f"POST /save-user - Saving user {data['username']}")

    storage = user_file()
    users = storage.load()
    upsert_record(users, data)
    storage.write(users)

    return jsonify({"success": True, "total": len(users)}), 200


@api_bp.route("/update-user/<username>", methods=["PUT"])
def update_user(username: str) -> tuple[Response, int]:
    """
    Merge partial fields into an existing user.

    Args:
        username: Key of the user to update.

    Returns:
        JSON ``{success, user}`` and 200, or an error and 404/400.
    """
    logger.info(f"PUT /update-user/{username} - Updating user")

    data = read_json_object()
    if data is None:
        return jsonify({"error": "Request body must be a JSON object"}), 400

    storage = user_file()
    users = storage.load()
    index = find_index(users, username)
    if index is None:
        logger.warning(f"User {username} not found")
        return jsonify({"error": USER_NOT_FOUND}), 404

    users[index] = merge_record(users[index], data)
    storage.write(users)

    return jsonify({"success": True, "user": users[index]}), 200


@api_bp.route("/users/status/<status>", methods=["GET"])
def get_users_by_status(status: str) -> tuple[Response, int]:
    """List users whose ``step`` equals *status* exactly."""
    users = filter_by_step(user_file().load(), status)
    logger.info(f"GET /users/status/{status} - Found {len(users)} users")
    return jsonify(users), 200


@api_bp.route("/users", methods=["GET"])
def get_users() -> tuple[Response, int]:
    """List every stored user."""
    users = user_file().load()
    logger.info(f"GET /users - Found {len(users)} users")
    return jsonify(users), 200


@api_bp.route("/users/<username>", methods=["GET"])
def get_user(username: str) -> tuple[Response, int]:
    """Get a single user by username, or 404."""
    users = user_file().load()
    index = find_index(users, username)
    if index is None:
        logger.warning(f"User {username} not found")
        return jsonify({"error": USER_NOT_FOUND}), 404
    return jsonify(users[index]), 200


@api_bp.route("/stats", methods=["GET"])
def get_stats() -> tuple[Response, int]:
    """Return presence-based counters over the stored users."""
    return jsonify(compute_stats(user_file().load())), 200


@api_bp.route("/users", methods=["DELETE"])
def clear_users() -> tuple[Response, int]:
    """Remove every stored user and flush the empty list."""
    logger.info("DELETE /users - Clearing all users")
    user_file().write([])
    return jsonify({"success": True, "message": "All data cleared"}), 200


# -----------------------------------------------------------------------------
# Error Handlers
# -----------------------------------------------------------------------------

@api_bp.app_errorhandler(404)
def not_found(error: Exception) -> tuple[Response, int]:
    """Handle 404 Not Found errors."""
    return jsonify({"error": "Resource not found"}), 404


@api_bp.app_errorhandler(405)
def method_not_allowed(error: Exception) -> tuple[Response, int]:
    """Handle 405 Method Not Allowed errors."""
    return jsonify({"error": "Method not allowed"}), 405


@api_bp.app_errorhandler(500)
def internal_error(error: Exception) -> tuple[Response, int]:
    """Handle 500 Internal Server errors."""
    logger.error(f"Internal server error: {error}")
    return jsonify({"error": "Internal server error"}), 500
