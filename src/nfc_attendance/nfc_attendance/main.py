from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify, send_from_directory
from flask_mail import Mail
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .database.bootstrap import apply_schema, list_tables, seed_users

from .container import build_container
from .attendance.controller import register as register_attendance
from .cards.controller import register as register_cards
from .common.web import error_response
from .core.exceptions import DomainError
from .sessions.controller import register as register_sessions
from .users.controller import register as register_users
from .users.password_reset import FlaskMailResetMailer

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(*, reader=None, users_repo=None, sessions_repo=None, attendance_repo=None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config.update(
        MAIL_SERVER=getattr(settings, "MAIL_SERVER", "localhost"),
        MAIL_PORT=int(getattr(settings, "MAIL_PORT", 465)),
        MAIL_USE_SSL=bool(getattr(settings, "MAIL_USE_SSL", True)),
        MAIL_USERNAME=getattr(settings, "MAIL_USERNAME", ""),
        MAIL_PASSWORD=getattr(settings, "MAIL_PASSWORD", ""),
    )

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        count = seed_users(db_config, seed_path=REPO_ROOT / "database" / "users_seed.json")
        logger.info("Seeded %d users", count)

    mailer = None
    if app.config["MAIL_USERNAME"] and app.config["MAIL_PASSWORD"]:
        sender = getattr(settings, "MAIL_SENDER", "") or app.config["MAIL_USERNAME"]
        mailer = FlaskMailResetMailer(Mail(app), sender=sender)
    else:
        logger.warning("Mail server not configured; reset links are only logged")

    container = build_container(
        db_config=db_config,
        identifier_field=getattr(settings, "IDENTIFIER_FIELD", "matric_no"),
        card_key=getattr(settings, "CARD_KEY"),
        card_random_iv=bool(getattr(settings, "CARD_RANDOM_IV", False)),
        nfc_poll_timeout=float(getattr(settings, "NFC_POLL_TIMEOUT_SECONDS", 10)),
        nfc_reader_index=int(getattr(settings, "NFC_READER_INDEX", 0)),
        photo_root=str(Path(getattr(settings, "PHOTO_ROOT", REPO_ROOT / "photos")).resolve()),
        photo_base_url=getattr(settings, "PHOTO_BASE_URL", "/photos"),
        check_connectivity=bool(getattr(settings, "CHECK_CONNECTIVITY", True)),
        reader=reader,
        secret_key=app.secret_key,
        reset_token_max_age=int(getattr(settings, "RESET_TOKEN_MAX_AGE", 24 * 60 * 60)),
        reset_link_base=getattr(settings, "RESET_LINK_BASE", "/reset-password"),
        mailer=mailer,
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
    )
    app.extensions["nfc_attendance"] = container

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return error_response(e)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"success": False, "message": e.description}), e.code
        logger.exception("Unhandled error")
        message = f"Internal error: {e}" if app.config["DEBUG"] else "Internal error"
        return jsonify({"success": False, "message": message}), 500

    @app.route("/photos/<path:filename>", endpoint="photo")
    def photo(filename: str):
        return send_from_directory(container.photos.root, filename)

    register_users(app, container)
    register_sessions(app, container)
    register_attendance(app, container)
    register_cards(app, container)

    return app
