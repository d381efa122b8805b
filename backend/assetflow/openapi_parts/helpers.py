"""Small schema fragments shared by the OpenAPI builder."""
from typing import Any, Dict


def ref(name: str) -> Dict[str, Any]:
    return {"$ref": f"#/components/schemas/{name}"}


def id_param(name: str) -> Dict[str, Any]:
    return {"name": name, "in": "path", "required": True, "schema": {"type": "integer"}}


def envelope(data_schema: Dict[str, Any]) -> Dict[str, Any]:
    """``{success, data}`` wrapper every JSON response uses."""
    return {
        "type": "object",
        "properties": {"success": {"type": "boolean"}, "data": data_schema},
        "required": ["success"],
    }


def json_ok(data_schema: Dict[str, Any], description: str = "OK") -> Dict[str, Any]:
    return {"description": description, "content": {"application/json": {"schema": envelope(data_schema)}}}


def caching_headers() -> Dict[str, Any]:
    return {"ETag": {"schema": {"type": "string"}}}


def error_responses(*codes: str) -> Dict[str, Any]:
    names = {"400": "BadRequest", "401": "Unauthorized", "403": "Forbidden", "404": "NotFound", "409": "Conflict"}
    return {c: {"$ref": f"#/components/responses/{names[c]}"} for c in codes}


__all__ = ["ref", "id_param", "envelope", "json_ok", "caching_headers", "error_responses"]
