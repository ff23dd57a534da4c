from flask import current_app, jsonify

from handbook.blueprints import int_arg
from handbook.blueprints.status import status_bp
from handbook.services.run_history import get_rename_history


@status_bp.route("/runs", methods=["GET"])
def runs_status():
    data = get_rename_history(
        current_app.config.get("STORAGE_RUN_LOGS_PATH"),
        limit=int_arg("limit", 10),
    )
    return jsonify(data), 200
