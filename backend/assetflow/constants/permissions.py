"""Central enum-like definitions to avoid typos in role/permission strings.
Codes follow SERVICE.ACTION. Never rename a code silently; add the new one and migrate clients.
"""
from __future__ import annotations
from typing import List, Dict

ROLE_ADMIN = 'admin'
ROLE_OFFICER = 'department-officer'
ALL_ROLES = (ROLE_ADMIN, ROLE_OFFICER)

SERVICE_ACTIONS = {
    'ASSET': ['READ', 'CREATE', 'UPDATE', 'DELETE', 'REQUEST_UPDATE', 'REVIEW_UPDATE'],
    'DEPT': ['READ', 'MANAGE'],
    'NOTIF': ['READ'],
    'ADMIN': ['USER.MANAGE', 'AUDIT.READ'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PRESETS: Dict[str, List[str]] = {
    # Officers propose changes; they never edit stored assets directly
    ROLE_OFFICER: ['ASSET.READ', 'ASSET.CREATE', 'ASSET.REQUEST_UPDATE', 'DEPT.READ', 'NOTIF.READ'],
    ROLE_ADMIN: [c for c in ALL_PERMISSION_CODES if c != 'ASSET.REQUEST_UPDATE'],
}


def permissions_for_role(role: str) -> List[str]:
    return sorted(ROLE_PRESETS.get(role, []))
