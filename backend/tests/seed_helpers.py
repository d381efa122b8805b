"""Test seeding helpers: departments, users of both roles, assets and tokens.

Names, emails and bill numbers are made unique per call so tests sharing the
session-scoped database never collide.
"""
import itertools
from datetime import date
from typing import Any, Dict, List, Optional
from assetflow import get_db
from assetflow.constants.permissions import ROLE_ADMIN, ROLE_OFFICER
from assetflow.models.asset import Asset
from assetflow.models.authz import User
from assetflow.models.department import Department
from assetflow.services.totals import normalize_items, refresh_asset_totals

_seq = itertools.count(1)

DEFAULT_ITEMS: List[Dict[str, Any]] = [
    {'particulars': 'Desktop', 'serialNumber': 'D-1', 'quantity': 2, 'rate': 100, 'cgst': 9, 'sgst': 9},
    {'particulars': 'Monitor', 'serialNumber': 'M-1', 'quantity': 1, 'rate': 50, 'cgst': 0, 'sgst': 0},
]


def unique(prefix: str) -> str:
    return f'{prefix}-{next(_seq)}'


def make_department(name: Optional[str] = None, type_: str = Department.TYPE_MAJOR) -> Department:
    session = get_db()
    d = Department(name=name or unique('Dept'), type=type_)
    session.add(d); session.commit()
    return d


def make_user(role: str = ROLE_OFFICER, department: Optional[Department] = None, password: str = 'pw',
              is_active: bool = True, name: Optional[str] = None) -> User:
    session = get_db()
    email = f"{unique(role)}@example.com"
    u = User(name=name or email.split('@')[0], email=email, password_hash='', role=role,
             department_id=department.id if department else None, is_active=is_active)
    u.set_password(password)
    session.add(u); session.commit()
    return u


def make_admin() -> User:
    return make_user(ROLE_ADMIN)


def make_officer(department: Optional[Department] = None) -> User:
    return make_user(ROLE_OFFICER, department or make_department())


def make_asset(department: Department, items: Optional[List[Dict[str, Any]]] = None, **overrides) -> Asset:
    session = get_db()
    fields: Dict[str, Any] = dict(
        department_id=department.id,
        category='capital',
        type=Asset.TYPE_CAPITAL,
        vendor_name='Acme Traders',
        bill_no=unique('BILL'),
        bill_date=date(2025, 1, 15),
        items=normalize_items(DEFAULT_ITEMS if items is None else items),
    )
    fields.update(overrides)
    asset = Asset(**fields)
    refresh_asset_totals(asset)
    session.add(asset); session.commit()
    return asset


def login(client, user: User, password: str = 'pw') -> str:
    resp = client.post('/auth/login', json={'email': user.email, 'password': password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()['token']


def auth_headers(client, user: User, password: str = 'pw') -> Dict[str, str]:
    return {'Authorization': f'Bearer {login(client, user, password)}'}


def reload_asset(asset_id: int) -> Asset:
    """Fresh copy from the database, bypassing anything cached by a prior request."""
    session = get_db()
    session.expire_all()
    return session.get(Asset, asset_id)


def submit(client, headers, asset_id: int, requested_fields, temp_values):
    return client.post(f'/assets/{asset_id}/request-update', headers=headers,
                       json={'requestedFields': requested_fields, 'tempValues': temp_values})


__all__ = [
    'DEFAULT_ITEMS', 'unique', 'make_department', 'make_user', 'make_admin', 'make_officer', 'make_asset',
    'login', 'auth_headers', 'reload_asset', 'submit',
]
