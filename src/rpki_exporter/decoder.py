"""Decoder for RPKI validator validity responses.

The validator answers with a document shaped like::

    {
      "validated_route": {
        "route": {"origin_asn": "AS65001", "prefix": "192.0.2.0/24"},
        "validity": {
          "state": "valid",
          "VRPs": {
            "matched": [{"asn": "AS65001", "prefix": "192.0.2.0/24", "max_length": "24"}],
            "unmatched_as": [],
            "unmatched_length": []
          }
        }
      }
    }

Only ``route`` and ``validity.state`` are required; the ``VRPs`` block is optional.
"""

import json
from typing import Any

from rpki_exporter.models.validation import NOT_FOUND_MAX_LENGTH, ValidationRecord


class DecodeError(ValueError):
    """Raised when a validator response body cannot be decoded."""

    pass


def _require_mapping(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"expected object for '{name}', got {type(value).__name__}")
    return value


def _require_string(obj: dict[str, Any], key: str, name: str) -> str:
    value = obj.get(key)
    if value is None or isinstance(value, (dict, list, bool)):
        raise DecodeError(f"missing or invalid '{name}.{key}'")
    return str(value)


def _vrp_list(vrps: dict[str, Any], key: str) -> list[Any]:
    value = vrps.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"expected list for 'validity.VRPs.{key}', got {type(value).__name__}")
    return value


def decode_validation(raw: bytes | str) -> ValidationRecord:
    """Parse a validator response body into a ValidationRecord.

    Args:
        raw: Response body as returned by the validator.

    Returns:
        ValidationRecord. The state is passed through unchecked; mapping it to
        a numeric code is the metrics layer's job.

    Raises:
        DecodeError: If the body is not JSON or does not match the schema.
    """
    try:
        document = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"response is not valid JSON: {e}") from e

    document = _require_mapping(document, "document")
    validated = _require_mapping(document.get("validated_route"), "validated_route")
    route = _require_mapping(validated.get("route"), "route")
    validity = _require_mapping(validated.get("validity"), "validity")

    vrps = validity.get("VRPs") or {}
    vrps = _require_mapping(vrps, "validity.VRPs")
    matched = _vrp_list(vrps, "matched")
    unmatched_length = _vrp_list(vrps, "unmatched_length")

    max_length = NOT_FOUND_MAX_LENGTH
    if matched:
        first = _require_mapping(matched[0], "validity.VRPs.matched[0]")
        max_length = _require_string(first, "max_length", "validity.VRPs.matched[0]")

    return ValidationRecord(
        prefix=_require_string(route, "prefix", "route"),
        origin_asn=_require_string(route, "origin_asn", "route"),
        state=_require_string(validity, "state", "validity"),
        max_length=max_length,
        has_unmatched_length=bool(unmatched_length),
    )
