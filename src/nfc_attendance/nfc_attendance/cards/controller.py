from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import lecturer_required
from ..container import Container
from .service import CardWrite


def _write_dict(result: CardWrite) -> dict:
    return {
        "person_id": result.person_id,
        "name": result.name,
        "identifier": result.identifier,
        "photo_url": result.photo_url,
        "timestamp": result.timestamp.isoformat(),
        "message": result.message,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/cards/write", methods=["POST"], endpoint="write_card")
    @lecturer_required
    def write_card():
        if request.files or request.form:
            identifier = request.form.get("identifier", "")
            upload = request.files.get("photo")
            photo = upload.read() if upload else None
        else:
            identifier = str((request.get_json(silent=True) or {}).get("identifier", ""))
            photo = None

        result = container.card_service.write_card(identifier, container.reader, photo=photo)
        return jsonify({"success": True, **_write_dict(result)})

    @app.route("/api/cards/read", methods=["POST"], endpoint="read_card")
    @lecturer_required
    def read_card():
        card = container.card_service.read_identifier(container.reader)
        return jsonify({"success": True, "identifier": card.identifier, "raw": card.raw, "tag_id": card.tag_id})

    @app.route("/api/cards/recent", endpoint="recent_writes")
    @lecturer_required
    def recent_writes():
        return jsonify({"success": True, "writes": [_write_dict(w) for w in container.card_service.recent_writes]})
