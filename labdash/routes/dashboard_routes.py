"""Flask route registration for the LabDash agent."""

from flask import abort, jsonify, request, send_from_directory

from labdash.core.config import config_payload
from labdash.core.filesystem_utils import build_docs_tree, read_doc_text, safe_relative_path
from labdash.core.response_helpers import bad_request_response, json_text_response, not_found_response


def register_routes(app, state):
    """Register stats, config, docs and dashboard asset routes."""

    # Route: /api/stats
    @app.route("/api/stats")
    def api_stats():
        """Serve the live snapshot and record client activity."""
        state["activity_tracker"].record_access()
        return json_text_response(state["snapshot_store"].render_json())

    # Route: /api/config
    @app.route("/api/config")
    def api_config():
        return jsonify(config_payload(state["config"]))

    # Route: /api/docs/tree
    @app.route("/api/docs/tree")
    def api_docs_tree():
        docs_path = state["DOCS_PATH"]
        if not docs_path.is_dir():
            return jsonify([])
        return jsonify(build_docs_tree(docs_path, state["config"].docs_depth))

    # Route: /api/docs/content
    @app.route("/api/docs/content")
    def api_docs_content():
        rel_path = (request.args.get("path") or "").strip()
        target = safe_relative_path(state["DOCS_PATH"], rel_path)
        if target is None:
            return bad_request_response("Invalid document path.")
        if not target.is_file():
            return not_found_response("Document not found.")
        text = read_doc_text(target)
        if text is None:
            return not_found_response("Document not readable.")
        return jsonify({"path": rel_path, "content": text})

    # Route: /raw/<path:filename>
    @app.route("/raw/<path:filename>")
    def raw_docs_asset(filename):
        docs_path = state["DOCS_PATH"]
        if not docs_path.is_dir():
            abort(404)
        return send_from_directory(docs_path, filename)

    # Route: / and client-side routes
    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def dashboard_assets(path):
        """Serve built dashboard files, falling back to index.html."""
        if state["skip_frontend"] or path.startswith("api/"):
            abort(404)
        dist_path = state["DIST_PATH"]
        if path and safe_relative_path(dist_path, path) is not None and (dist_path / path).is_file():
            return send_from_directory(dist_path, path)
        return send_from_directory(dist_path, "index.html")
