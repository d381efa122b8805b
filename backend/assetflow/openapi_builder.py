"""Deterministic OpenAPI document for the AssetFlow API.

Scope:
- Auth: login, me, self-registration and the password reset flow
- Entities from ``ENTITIES`` with list / single / action paths
- Update-request review queue, item edits, bill files, notifications, admin
- Every operation carries ``x-required-permissions`` with the permission codes
  its handler checks, and an ``operationId`` derived from method and path.
"""
from typing import Any, Dict
from .openapi_parts.constants import ENTITIES, TRANSITIONS, SORT_DETAILS
from .openapi_parts.helpers import ref, id_param, json_ok, error_responses
from .openapi_parts.paths import build_entity_paths, write_op

__all__ = ["build_openapi_spec"]


def _props(**fields: str) -> Dict[str, Any]:
    return {name: {"type": t} for name, t in fields.items()}


def _schemas() -> Dict[str, Any]:
    item = {
        "type": "object",
        "properties": _props(particulars="string", serialNumber="string", quantity="number", rate="number",
                             cgst="number", sgst="number", amount="number", grandTotal="number"),
    }
    asset_props = _props(
        id="integer", category="string", type="string", itemName="string", quantity="number",
        pricePerItem="number", totalAmount="number", vendorName="string", vendorAddress="string",
        contactNumber="string", email="string", billNo="string", billDate="string", billFileId="integer",
        collegeISRNo="string", itISRNo="string", igst="number", cgst="number", sgst="number",
        grandTotal="number", remark="string", updateRequestStatus="string", requestedBy="integer",
        requestedAt="string", reviewedBy="integer", reviewedAt="string", adminRemarks="string",
        version="integer", createdAt="string", updatedAt="string",
    )
    asset_props["department"] = ref("DepartmentRef")
    asset_props["items"] = {"type": "array", "items": ref("Item")}
    asset_props["requestedFields"] = {"type": "array", "items": {"type": "string"}}
    asset_props["tempValues"] = {"type": "object"}
    asset = {"type": "object", "properties": asset_props, "required": ["id", "billNo", "vendorName", "billDate"]}
    asset["x-transitions"] = TRANSITIONS["Asset"]["states"]

    pending_props: Dict[str, Any] = {
        "department": ref("DepartmentRef"),
        "requestedBy": {"type": "object", "properties": _props(id="integer", name="string", email="string")},
        "currentValues": {"type": "object", "additionalProperties": {"type": "string"}},
        "newValues": {"type": "object", "additionalProperties": {"type": "string"}},
    }

    return {
        "Item": item,
        "Asset": asset,
        "Department": {"type": "object", "properties": _props(id="integer", name="string", type="string"),
                       "required": ["id", "name", "type"]},
        "DepartmentRef": {"type": "object", "properties": _props(id="integer", name="string")},
        "PendingUpdate": {"allOf": [ref("Asset"), {"type": "object", "properties": pending_props}]},
        "PasswordResetRequest": {"type": "object", "properties": {
            **_props(id="integer", userId="integer", reason="string", reviewedAt="string",
                     rejectedReason="string", createdAt="string"),
            "status": {"type": "string", "enum": ["PENDING", "APPROVED", "REJECTED"]},
        }},
        "UpdateRequest": {
            "type": "object",
            "properties": {
                "requestedFields": {"type": "array", "items": {"type": "string"}},
                "tempValues": {"type": "object"},
            },
            "required": ["requestedFields", "tempValues"],
        },
        "Decision": {"type": "object", "properties": _props(adminRemarks="string")},
        "Notification": {"type": "object", "properties": _props(
            id="integer", recipient="integer", type="string", title="string", message="string",
            assetId="integer", billNo="string", isRead="boolean", createdAt="string")},
        "User": {"type": "object", "properties": _props(id="integer", name="string", email="string",
                                                        role="string", isActive="boolean")},
        "AuditLog": {"type": "object", "properties": _props(id="integer", actorUserId="integer", action="string",
                                                            entity="string", entityId="string", role="string",
                                                            createdAt="string")},
        "Pagination": {
            "type": "object",
            "properties": _props(total="integer", limit="integer", offset="integer", returned="integer"),
            "required": ["total", "limit", "offset", "returned"],
        },
        "Error": {
            "type": "object",
            "properties": {
                "success": {"type": "boolean"},
                "message": {"type": "string"},
                "error": {"type": "object", "properties": _props(status="integer", title="string", detail="string")},
            },
            "required": ["success", "message", "error"],
        },
    }


def _error(description: str) -> Dict[str, Any]:
    return {"description": description, "content": {"application/json": {"schema": ref("Error")}}}


def build_openapi_spec() -> Dict[str, Any]:
    components: Dict[str, Any] = {
        "schemas": _schemas(),
        "responses": {
            "BadRequest": _error("Bad Request"),
            "Unauthorized": _error("Missing or invalid token"),
            "Forbidden": _error("Missing permission or department access"),
            "NotFound": _error("Not Found"),
            "Conflict": _error("Workflow state or version conflict"),
        },
        "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
        "parameters": {
            "LimitParam": {"name": "limit", "in": "query", "schema": {"type": "integer", "default": 10}},
            "OffsetParam": {"name": "offset", "in": "query", "schema": {"type": "integer", "default": 0}},
        },
    }
    for pname, desc in SORT_DETAILS.items():
        components["parameters"][pname] = {"name": "sort", "in": "query", "schema": {"type": "string"}, "description": desc}

    paths: Dict[str, Any] = {
        "/auth/login": {"post": {"summary": "Login", "security": [],
                                 "responses": {"200": {"description": "JWT issued"}, **error_responses("400", "401")}}},
        "/auth/me": {"get": {"summary": "Current user", "responses": {"200": json_ok(ref("User"))}}},
        "/auth/register": {"post": {"summary": "Self-register as a department officer", "security": [],
                                    "responses": {"201": json_ok(ref("User")), **error_responses("400", "403")}}},
        "/auth/password-reset/request": {"post": {
            "summary": "Request a password reset (admins receive a token, officers wait for approval)", "security": [],
            "responses": {"200": json_ok({"type": "object"}), **error_responses("400", "404", "409")}}},
        "/auth/password-reset/confirm": {"post": {"summary": "Set a new password with a reset token", "security": [],
                                                  "responses": {"200": json_ok({"type": "object"}), **error_responses("400")}}},
    }

    for schema_name, coll, id_name, read_perm in ENTITIES:
        for k, v in build_entity_paths(schema_name, coll, id_name, read_perm).items():
            paths[k] = v

    paths["/assets"]["post"] = write_op("Create asset", "ASSET.CREATE", ref("Asset"), "201")
    paths["/assets/{asset_id}"]["put"] = write_op("Edit asset in place", "ASSET.UPDATE", ref("Asset"), "200", "400", "403", "404", "409")
    paths["/assets/{asset_id}"]["delete"] = write_op("Delete asset", "ASSET.DELETE", ref("Asset"), "200", "400", "403", "404")
    paths["/assets/{asset_id}/request-update"]["post"]["requestBody"] = {
        "required": True, "content": {"application/json": {"schema": ref("UpdateRequest")}}}
    for action in ("approve-update", "reject-update"):
        paths[f"/assets/{{asset_id}}/{action}"]["post"]["requestBody"] = {
            "content": {"application/json": {"schema": ref("Decision")}}}
    paths["/assets/pending-updates"] = {
        "get": {
            "summary": "Pending update requests with rendered current and proposed values",
            "parameters": [{"name": "departmentId", "in": "query", "schema": {"type": "integer"}}],
            "responses": {"200": json_ok({"type": "array", "items": ref("PendingUpdate")}), **error_responses("403")},
            "x-required-permissions": ["ASSET.REVIEW_UPDATE"],
        }
    }
    paths["/assets/{asset_id}/items"] = {
        "put": write_op("Replace one item", "ASSET.UPDATE", ref("Asset"), "200", "400", "403", "404", "409"),
        "delete": write_op("Delete one item", "ASSET.UPDATE", ref("Asset"), "200", "400", "403", "404", "409"),
    }
    paths["/assets/{asset_id}/bill"] = {
        "post": write_op("Upload bill PDF", "ASSET.CREATE", ref("Asset"), "201", "400", "403", "404"),
        "get": {
            "summary": "Download bill PDF",
            "parameters": [{"name": "inline", "in": "query", "schema": {"type": "string"}}],
            "responses": {"200": {"description": "PDF", "content": {"application/pdf": {}}}, **error_responses("403", "404")},
            "x-required-permissions": ["ASSET.READ"],
        },
    }
    for path in ("/assets/{asset_id}", "/assets/{asset_id}/items", "/assets/{asset_id}/bill"):
        for op in paths[path].values():
            op.setdefault("parameters", [])
            if not any(p.get("name") == "asset_id" for p in op["parameters"]):
                op["parameters"].insert(0, id_param("asset_id"))

    paths["/departments"]["post"] = write_op("Create department", "DEPT.MANAGE", ref("Department"), "201")
    paths["/departments/{dept_id}"] = {
        "put": write_op("Update department", "DEPT.MANAGE", ref("Department"), "200", "400", "403", "404"),
        "delete": write_op("Delete department", "DEPT.MANAGE", ref("Department"), "200", "403", "404", "409"),
    }
    for op in paths["/departments/{dept_id}"].values():
        op["parameters"] = [id_param("dept_id")]

    paths["/notifications"] = {"get": {
        "summary": "Latest notifications for the caller",
        "responses": {"200": json_ok({"type": "array", "items": ref("Notification")})},
        "x-required-permissions": ["NOTIF.READ"],
    }}
    paths["/notifications/{notification_id}/read"] = {"put": write_op(
        "Mark notification read", "NOTIF.READ", {"type": "object"}, "200", "404")}
    paths["/notifications/{notification_id}/read"]["put"]["parameters"] = [id_param("notification_id")]
    paths["/notifications/mark-all-read"] = {"put": write_op(
        "Mark all notifications read", "NOTIF.READ", {"type": "object"}, "200", "401")}

    paths["/admin/users"] = {
        "get": write_op("List users", "ADMIN.USER.MANAGE", {"type": "array", "items": ref("User")}, "200", "403"),
        "post": write_op("Create user", "ADMIN.USER.MANAGE", ref("User"), "201"),
    }
    paths["/admin/audit/logs"] = {"get": write_op(
        "List audit log entries", "ADMIN.AUDIT.READ", {"type": "array", "items": ref("AuditLog")}, "200", "403")}
    paths["/admin/password-resets"] = {"get": write_op(
        "List password reset requests", "ADMIN.USER.MANAGE", {"type": "array", "items": ref("PasswordResetRequest")}, "200", "403")}
    for action in ("approve", "reject"):
        op = write_op(f"{action.capitalize()} password reset request", "ADMIN.USER.MANAGE", ref("PasswordResetRequest"),
                      "200", "403", "404", "409")
        op["parameters"] = [id_param("request_id")]
        paths[f"/admin/password-resets/{{request_id}}/{action}"] = {"post": op}
    paths["/healthz"] = {"get": {"summary": "Liveness check", "security": [],
                                 "responses": {"200": {"description": "OK"}}}}

    # operationIds & tags
    tag_desc: Dict[str, str] = {}
    for path, ops in paths.items():
        tag = path.split("/")[1].capitalize()
        for method, od in ops.items():
            rid = path.strip("/").replace("/", "_").replace("{", "").replace("}", "").replace("-", "_")
            od["operationId"] = f"{method}_{rid}"
            od["tags"] = [tag]
        tag_desc[tag] = f"{tag} endpoints"

    return {
        "openapi": "3.0.3",
        "info": {"title": "AssetFlow API", "version": "0.1.0"},
        "paths": dict(sorted(paths.items())),
        "components": components,
        "security": [{"BearerAuth": []}],
        "tags": [{"name": n, "description": d} for n, d in sorted(tag_desc.items())],
    }
