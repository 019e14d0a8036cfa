# haul_core/common/api/serializers.py
from __future__ import annotations

from haul_core.common.naming import to_camel


class CamelCaseRepresentationMixin:
    """Outgoing keys in camelCase; the scanner/monitor apps read them that way."""

    def to_representation(self, instance):
        data = super().to_representation(instance)
        return {to_camel(key): value for key, value in data.items()}
