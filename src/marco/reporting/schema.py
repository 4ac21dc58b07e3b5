"""JSON schema definition for reporter output."""
from __future__ import annotations

SCHEMA_VERSION = "1.0.0"

JSON_SCHEMA_V1 = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "marco report",
    "type": "object",
    "required": ["schema_version", "generated_at", "summary", "load_errors", "cases"],
    "properties": {
        "schema_version": {"type": "string"},
        "generated_at": {"type": "string", "format": "date-time"},
        "summary": {
            "type": "object",
            "required": ["total", "passed", "failed", "errored", "file_errors", "duration_s", "threads"],
            "properties": {
                "total": {"type": "integer"},
                "passed": {"type": "integer"},
                "failed": {"type": "integer"},
                "errored": {"type": "integer"},
                "file_errors": {"type": "integer"},
                "duration_s": {"type": "number"},
                "threads": {"type": "integer", "minimum": 1},
            },
        },
        "load_errors": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["file", "message"],
                "properties": {
                    "file": {"type": "string"},
                    "message": {"type": "string"},
                },
            },
        },
        "cases": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "file", "name", "order_index", "line", "status", "duration_ms", "runner"],
                "properties": {
                    "id": {"type": "string"},
                    "file": {"type": "string"},
                    "name": {"type": "string"},
                    "order_index": {"type": "integer"},
                    "line": {"type": "integer"},
                    "status": {"enum": ["passed", "failed", "errored"]},
                    "duration_ms": {"type": "number"},
                    "runner": {"type": "string"},
                    "exit_code": {"type": ["integer", "null"]},
                    "diagnostic": {"type": "string"},
                    "actual_output": {"type": "string"},
                    "expected_output": {"type": ["string", "null"]},
                },
            },
        },
    },
}
