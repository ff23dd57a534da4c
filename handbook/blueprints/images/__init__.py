from flask import Blueprint

images_bp = Blueprint("images", __name__, url_prefix="/api/images")

from handbook.blueprints.images import routes  # noqa: E402,F401
