"""Extraction helpers: tolerant JSON decoding, field coercion, expiry dates, PDF rasterization."""

from extraction.json_decode import JsonDecodeFailure, decode_json_object
from extraction.expiry import ExpiryDateInterpreter, parse_expiry_date

__all__ = [
    "JsonDecodeFailure",
    "decode_json_object",
    "ExpiryDateInterpreter",
    "parse_expiry_date",
]
