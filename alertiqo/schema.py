"""JSON Schema for the report body accepted by the collector."""

from collections import defaultdict

import jsonschema

from alertiqo.models import LEVELS

BREADCRUMB_SCHEMA = {
    "type": "object",
    "required": ["timestamp", "message", "category", "level"],
    "properties": {
        "timestamp": {"type": "integer"},
        "message": {"type": "string"},
        "category": {"type": "string"},
        "level": {"enum": list(LEVELS)},
        "data": {"type": "object"},
    },
}

REPORT_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": [
        "message", "level", "timestamp", "environment", "tags", "context", "breadcrumbs",
    ],
    "properties": {
        "message": {"type": "string"},
        "stack": {"type": "string"},
        "file": {"type": "string"},
        "line": {"type": "integer"},
        "column": {"type": "integer"},
        "level": {"enum": list(LEVELS)},
        "timestamp": {"type": "integer"},
        "environment": {"type": "string"},
        "release": {"type": "string"},
        "tags": {"type": "object", "additionalProperties": {"type": "string"}},
        "user": {
            "type": "object",
            "properties": {
                "id": {"type": "string"},
                "email": {"type": "string"},
                "username": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "context": {
            "type": "object",
            "properties": {
                "browser": {"type": "string"},
                "os": {"type": "string"},
                "url": {"type": "string"},
                "userAgent": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "breadcrumbs": {"type": "array", "items": BREADCRUMB_SCHEMA},
    },
    "additionalProperties": False,
}


class ReportValidator:
    """Validates report payloads against REPORT_SCHEMA."""

    def __init__(self, schema=None):
        self._validator = jsonschema.Draft202012Validator(schema or REPORT_SCHEMA)
        self._error_types = defaultdict(int)

    def validate(self, payload):
        """Validate a report payload.

        Returns:
            tuple: (is_valid: bool, errors: list[str])
        """
        errors = list(self._validator.iter_errors(payload))
        if not errors:
            return True, []

        for error in errors:
            self._error_types[error.validator] += 1
        return False, [error.message for error in errors]

    def get_error_types(self):
        """Return counts of failed schema keywords seen so far."""
        return dict(self._error_types)
