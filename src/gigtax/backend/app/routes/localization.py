"""Serve the English and Afrikaans catalogues and single backend messages."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from gigtax.backend.app.http import problem_response
from gigtax.backend.app.localization import (
    available_locales,
    get_translator,
    load_translations,
)
from gigtax.backend.services.request_parser import locale_hint

blueprint = Blueprint("translations", __name__, url_prefix="/api/v1/translations")


def _catalogue_payload(requested: str | None) -> dict[str, Any]:
    payload = load_translations(requested)
    language = (requested or "").strip().lower().replace("_", "-").split("-")[0]
    payload["requested_locale"] = requested
    # Unsupported languages are answered from the English catalogue.
    payload["is_fallback"] = bool(language) and language not in available_locales()
    return payload


@blueprint.get("/")
def get_default_translations() -> tuple[Any, int]:
    """Return the catalogue named by ``?locale`` or ``Accept-Language``."""

    return jsonify(_catalogue_payload(locale_hint(request))), 200


@blueprint.get("/<locale>")
def get_locale_translations(locale: str) -> tuple[Any, int]:
    return jsonify(_catalogue_payload(locale)), 200


@blueprint.get("/<locale>/messages/<path:key>")
def get_backend_message(locale: str, key: str) -> tuple[Any, int]:
    """Return one backend message, or 404 when no catalogue defines ``key``."""

    translator = get_translator(locale)
    if not translator.has(key):
        return problem_response(
            "not_found", status=404, message=f"Unknown message key '{key}'"
        ).to_response()

    return jsonify({"locale": translator.locale, "key": key, "message": translator(key)}), 200
