"""Path fragments for the OpenAPI document.

Per entity: list path first, single-resource path next, then action
endpoints in registry order.
"""
from typing import Any, Dict, List

from .constants import ACTION_REGISTRY
from .helpers import ref, id_param, json_ok, caching_headers, error_responses


def build_entity_paths(schema_name: str, coll: str, id_name: str, read_perm: str) -> Dict[str, Any]:
    paths: Dict[str, Any] = {}
    list_path = f"/{coll}"
    single_path = f"{list_path}/{{{id_name}}}"

    list_params: List[Dict[str, Any]] = []
    if schema_name == "Asset":
        list_params = [
            {"$ref": "#/components/parameters/LimitParam"},
            {"$ref": "#/components/parameters/OffsetParam"},
            {"$ref": "#/components/parameters/SortAssetsParam"},
        ] + [
            {"name": n, "in": "query", "schema": {"type": t}}
            for n, t in (("departmentId", "integer"), ("type", "string"), ("startDate", "string"),
                         ("endDate", "string"), ("vendorName", "string"), ("updateRequestStatus", "string"))
        ]
    list_ok = json_ok({"type": "array", "items": ref(schema_name)})
    if schema_name == "Asset":
        list_ok["headers"] = caching_headers()
        list_ok["content"]["application/json"]["schema"]["properties"]["pagination"] = ref("Pagination")
    paths[list_path] = {
        "get": {
            "summary": f"List {coll}",
            "parameters": list_params,
            "responses": {"200": list_ok, "304": {"description": "Not Modified"}, **error_responses("400", "401", "403")},
            "x-required-permissions": [read_perm],
        },
    }

    single: Dict[str, Any] = {}
    if schema_name == "Asset":
        single["get"] = {
            "summary": "Get asset",
            "parameters": [id_param(id_name)],
            "responses": {"200": json_ok(ref(schema_name)), **error_responses("403", "404")},
            "x-required-permissions": [read_perm],
        }
    paths[single_path] = single

    for spec in ACTION_REGISTRY.get(schema_name, []):
        paths[f"{single_path}/{spec['action']}"] = {
            "post": {
                "summary": spec["summary"],
                "parameters": [id_param(id_name)],
                "responses": {"200": json_ok(ref(schema_name)), **error_responses("400", "403", "404", "409")},
                "x-required-permissions": [spec["permission"]],
            }
        }
    return paths


def write_op(summary: str, perm: str, schema: Dict[str, Any], status: str = "200", *errors: str) -> Dict[str, Any]:
    return {
        "summary": summary,
        "responses": {status: json_ok(schema), **error_responses(*(errors or ("400", "403")))},
        "x-required-permissions": [perm],
    }


__all__ = ["build_entity_paths", "write_op"]
