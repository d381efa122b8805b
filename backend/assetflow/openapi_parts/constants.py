"""Registries the OpenAPI builder walks. Ordering is significant: the
generated document must be byte-stable between runs.
"""
from typing import Dict, List, Tuple

from assetflow.models.asset import Asset

# (SchemaName, collection path, id param, read permission)
ENTITIES: List[Tuple[str, str, str, str]] = [
    ("Asset", "assets", "asset_id", "ASSET.READ"),
    ("Department", "departments", "dept_id", "DEPT.READ"),
]

# State-changing POST endpoints hanging off a single resource.
ACTION_REGISTRY: Dict[str, List[Dict[str, str]]] = {
    "Asset": [
        {"action": "request-update", "summary": "Propose field changes for admin review", "permission": "ASSET.REQUEST_UPDATE"},
        {"action": "approve-update", "summary": "Approve the pending update request", "permission": "ASSET.REVIEW_UPDATE"},
        {"action": "reject-update", "summary": "Reject the pending update request", "permission": "ASSET.REVIEW_UPDATE"},
    ],
}

TRANSITIONS: Dict[str, Dict[str, List[str]]] = {
    "Asset": {
        "field": ["updateRequestStatus"],
        "states": list(Asset.ALL_UPDATE_STATUSES),
    },
}

SORT_DETAILS = {
    "SortAssetsParam": "Multi-field sort (billDate,billNo,vendorName,grandTotal,createdAt,id). Prefix - for desc",
}

__all__ = [
    "ENTITIES",
    "ACTION_REGISTRY",
    "TRANSITIONS",
    "SORT_DETAILS",
]
