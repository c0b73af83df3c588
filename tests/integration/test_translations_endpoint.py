"""Integration tests for the translations API."""

from __future__ import annotations

import json
from pathlib import Path

from flask.testing import FlaskClient

TRANSLATIONS_ROOT = Path(__file__).resolve().parents[2] / "src" / "gigtax" / "translations"


def _load_catalogue(locale: str) -> dict:
    return json.loads(TRANSLATIONS_ROOT.joinpath(f"{locale}.json").read_text(encoding="utf-8"))


def _load_backend_value(locale: str, key: str) -> str:
    return str(_load_catalogue(locale)["backend"][key])


def _load_frontend_value(locale: str, *key_parts: str) -> str:
    cursor = _load_catalogue(locale).get("frontend", {})
    for part in key_parts:
        if not isinstance(cursor, dict) or part not in cursor:
            raise AssertionError(f"Missing frontend key for locale {locale}: {'.'.join(key_parts)}")
        cursor = cursor[part]
    return str(cursor)


def _first_frontend_path(locale: str) -> tuple[str, ...]:
    cursor = _load_catalogue(locale)["frontend"]
    path: list[str] = []
    while isinstance(cursor, dict):
        key = next(iter(cursor))
        path.append(key)
        cursor = cursor[key]
    return tuple(path)


def test_translations_endpoint_returns_default_catalogue(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/")
    assert response.status_code == 200
    payload = response.get_json()

    assert payload["locale"] == "en"
    assert payload["available_locales"] == ["af", "en"]
    assert payload["backend"]["summary.estimated_tax"] == _load_backend_value(
        "en", "summary.estimated_tax"
    )
    assert payload["fallback"]["locale"] == "en"


def test_translations_endpoint_respects_locale_path(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/af")
    assert response.status_code == 200
    payload = response.get_json()

    assert payload["locale"] == "af"
    assert payload["backend"]["summary.estimated_tax"] == _load_backend_value(
        "af", "summary.estimated_tax"
    )

    path = _first_frontend_path("af")
    cursor = payload["frontend"]
    for part in path:
        cursor = cursor[part]
    assert cursor == _load_frontend_value("af", *path)
    assert payload["fallback"]["locale"] == "en"


def test_translations_endpoint_accepts_query_locale(client: FlaskClient) -> None:
    payload = client.get("/api/v1/translations/?locale=af-ZA").get_json()

    assert payload["locale"] == "af"


def test_unknown_locale_falls_back_to_english(client: FlaskClient) -> None:
    payload = client.get("/api/v1/translations/xh").get_json()

    assert payload["locale"] == "en"
    assert payload["backend"] == payload["fallback"]["backend"]


def test_translations_report_requested_locale(client: FlaskClient) -> None:
    supported = client.get("/api/v1/translations/af-ZA").get_json()
    unsupported = client.get("/api/v1/translations/xh").get_json()

    assert supported["requested_locale"] == "af-ZA"
    assert supported["is_fallback"] is False
    assert unsupported["requested_locale"] == "xh"
    assert unsupported["is_fallback"] is True


def test_default_translations_follow_accept_language(client: FlaskClient) -> None:
    payload = client.get(
        "/api/v1/translations/", headers={"Accept-Language": "af-ZA,en;q=0.8"}
    ).get_json()

    assert payload["locale"] == "af"
    assert payload["requested_locale"] == "af-ZA"
    assert payload["is_fallback"] is False


def test_default_translations_without_hint(client: FlaskClient) -> None:
    payload = client.get("/api/v1/translations/").get_json()

    assert payload["requested_locale"] is None
    assert payload["is_fallback"] is False


def test_single_backend_message(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/af/messages/summary.estimated_tax")

    assert response.status_code == 200
    assert response.get_json() == {
        "locale": "af",
        "key": "summary.estimated_tax",
        "message": _load_backend_value("af", "summary.estimated_tax"),
    }


def test_unknown_backend_message_returns_problem_response(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/en/messages/summary.nope")

    assert response.status_code == 404
    payload = response.get_json()
    assert payload["error"] == "not_found"
    assert "summary.nope" in payload["message"]
