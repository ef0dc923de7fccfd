"""
Request parsing helpers shared by the API blueprints.

Every helper raises ValidationError so bad input turns into a 400 result
through the error handlers.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from flask import request

from asset_lifecycle.buisness.core.errors import ValidationError
from asset_lifecycle.utils.money import to_decimal


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError({'body': 'Expected a JSON object'})
    return data


def actor_id(data: Optional[dict] = None) -> int:
    """Caller identity from the ``X-Actor-Id`` header, or ``actor_id`` in the body."""
    raw = request.headers.get('X-Actor-Id')
    if raw is None and data is not None:
        raw = data.get('actor_id')
    if raw is None or raw == '':
        raise ValidationError({'actor_id': 'Send X-Actor-Id or actor_id'})
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError({'actor_id': 'Must be an integer'})


def parse_date(value, field: str) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError({field: 'Expected a date as YYYY-MM-DD'})


def parse_decimal(value, field: str) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        return to_decimal(value)
    except ValueError:
        raise ValidationError({field: 'Expected a decimal number'})


def parse_int(value, field: str) -> Optional[int]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError({field: 'Expected an integer'})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({field: 'Expected an integer'})


def query_date(name: str) -> Optional[date]:
    return parse_date(request.args.get(name), name)


def query_int(name: str) -> Optional[int]:
    return parse_int(request.args.get(name), name)
