"""Shared Flask response helpers for the JSON API."""

from flask import Response, jsonify

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
}


def apply_cors_headers(response):
    """Allow dashboard clients served from any origin."""
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


def json_text_response(body, status_code=200):
    """Wrap an already serialised JSON document."""
    return apply_cors_headers(Response(body, status=status_code, mimetype="application/json"))


def json_error_response(error, message, status_code):
    """Return a standardized error payload."""
    response = jsonify({"ok": False, "error": error, "message": message})
    response.status_code = status_code
    return apply_cors_headers(response)


def bad_request_response(message):
    """Return a 400 payload for invalid query parameters."""
    return json_error_response("bad_request", message, 400)


def not_found_response(message):
    """Return a 404 payload for unknown documents."""
    return json_error_response("not_found", message, 404)


def internal_error_response():
    """Return generic internal-error response payload."""
    return json_error_response("internal_error", "Internal server error.", 500)
