# haul_core/common/api/fields.py
from __future__ import annotations

from rest_framework import serializers

from haul_core.common.sanitize import clean_number, parse_json_object


class CleanNumberField(serializers.Field):
    """
    Lenient numeric input: "5,800 kg" -> 5800.0. Unparseable input becomes
    null rather than a validation error, matching what the monitor apps send.
    """

    def __init__(self, **kwargs):
        kwargs.setdefault("allow_null", True)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        return clean_number(data)

    def to_representation(self, value):
        return value


class JSONObjectField(serializers.Field):
    """A JSON object, posted either inline or as a JSON-encoded string."""

    default_error_messages = {
        "invalid": "Expected a JSON object (or a string containing one).",
    }

    def to_internal_value(self, data):
        try:
            return parse_json_object(data)
        except ValueError:
            self.fail("invalid")

    def to_representation(self, value):
        return value
