"""OpenAPI customization utilities.

Enriches the generated schema with tag descriptions and documents the
shared error envelope and 429 rate-limit response on every friends operation.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Friends",
        "description": "Read and mutate the shared friends document.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

ERROR_ENVELOPE_SCHEMA = {
    "type": "object",
    "properties": {
        "success": {"type": "boolean", "enum": [False]},
        "error": {"type": "string"},
        "code": {"type": "string"},
        "request_id": {"type": "string", "nullable": True},
    },
    "required": ["success", "error"],
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with tags and error responses."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("schemas", {})["ErrorResponse"] = ERROR_ENVELOPE_SCHEMA
        error_ref = {"$ref": "#/components/schemas/ErrorResponse"}

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                continue
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                for status, description in (
                    ("400", "Invalid request"),
                    ("429", "Rate limit exceeded"),
                    ("500", "Document store unavailable"),
                ):
                    responses.setdefault(
                        status,
                        {
                            "description": description,
                            "content": {"application/json": {"schema": error_ref}},
                        },
                    )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
