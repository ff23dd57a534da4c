from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event


db = SQLAlchemy()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_app(config_object=None):
    app = Flask(__name__)

    from handbook.config import DevelopmentConfig

    app.config.from_object(config_object or DevelopmentConfig)

    from handbook.logger import configure_logging

    configure_logging(app)

    db.init_app(app)

    with app.app_context():
        uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
        if uri.startswith("sqlite"):
            # SQLite leaves foreign keys unenforced unless asked per connection.
            event.listen(db.engine, "connect", _enable_sqlite_foreign_keys)

        import handbook.models  # noqa: F401

    from handbook.blueprints.chapters import chapters_bp
    from handbook.blueprints.images import images_bp
    from handbook.blueprints.status import status_bp
    from handbook.blueprints.health import health_bp

    app.register_blueprint(chapters_bp)
    app.register_blueprint(images_bp)
    app.register_blueprint(status_bp)
    app.register_blueprint(health_bp)

    from handbook.errors import HandbookError

    @app.errorhandler(HandbookError)
    def handle_handbook_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    return app
