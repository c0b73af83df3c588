"""Request and response helpers shared by the HTTP routes."""

from .request_parser import parse_calculation_payload, parse_json_payload
from .response_builder import build_calculation_response, build_csv_response

__all__ = [
    "build_calculation_response",
    "build_csv_response",
    "parse_calculation_payload",
    "parse_json_payload",
]
