"""Utilities for serialising service results into Flask responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Tuple

from flask import Response, jsonify

ResponseTuple = Tuple[Any, int]


def build_calculation_response(payload: Mapping[str, Any]) -> ResponseTuple:
    """Return a Flask JSON response for the calculation ``payload``."""

    return jsonify(payload), 200


def build_csv_response(filename: str, content: str) -> Response:
    """Return ``content`` as a CSV attachment named ``filename``."""

    response = Response(content, mimetype="text/csv")
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


__all__ = ["build_calculation_response", "build_csv_response"]
