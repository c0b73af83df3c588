"""Helpers for normalising incoming JSON requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest

from gigtax.backend.app.localization import normalise_locale


def locale_hint(req: Request) -> str | None:
    """Return the raw locale requested through ``?locale`` or ``Accept-Language``."""

    locale_param = req.args.get("locale")
    if locale_param and locale_param.strip():
        return locale_param.strip()

    accept_language = req.headers.get("Accept-Language")
    if accept_language:
        primary = accept_language.split(",")[0].split(";")[0].strip()
        if primary:
            return primary
    return None


def _resolve_locale(req: Request, payload: dict[str, Any]) -> None:
    """Populate the locale field in ``payload`` based on hints in ``req``.

    An explicit body value wins over the ``locale`` query parameter, which
    wins over the first ``Accept-Language`` entry.
    """

    locale = payload.get("locale")
    if isinstance(locale, str) and locale.strip():
        payload["locale"] = normalise_locale(locale)
        return

    hint = locale_hint(req)
    if hint:
        payload["locale"] = normalise_locale(hint)


def parse_json_payload(req: Request) -> dict[str, Any]:
    """Return the JSON object in ``req`` or raise ``BadRequest``."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract a JSON payload from ``req`` and resolve its locale."""

    payload = parse_json_payload(req)
    _resolve_locale(req, payload)
    return payload


__all__ = ["locale_hint", "parse_calculation_payload", "parse_json_payload"]
