from flask import Blueprint

status_bp = Blueprint("status", __name__, url_prefix="/status")

from handbook.blueprints.status import routes  # noqa: E402,F401
