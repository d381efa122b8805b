from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, func
from assetflow import get_db
from assetflow.decorators.auth import require_permissions
from assetflow.decorators.audit import audit_log
from assetflow.models.asset import Asset
from assetflow.models.department import Department
from assetflow.utils.validation import validate_choice, require_fields

dept_bp = Blueprint('departments', __name__)


@dept_bp.get('')
@require_permissions('DEPT.READ')
def list_departments():
    session = get_db()
    rows = session.execute(select(Department).order_by(Department.name.asc())).scalars().all()
    return {'success': True, 'count': len(rows), 'data': [_dept_json(d) for d in rows]}


def _name_taken(session, name: str, exclude_id=None) -> bool:
    stmt = select(Department.id).where(Department.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Department.id != exclude_id)
    return session.execute(stmt).first() is not None


@dept_bp.post('')
@require_permissions('DEPT.MANAGE')
@audit_log('DEPT.CREATE', entity='Department', entity_id_key='id', meta_keys=['name', 'type'])
def create_department():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'name', 'type')
    name = data['name'].strip()
    validate_choice(data['type'], Department.ALL_TYPES, 'type')
    if _name_taken(session, name):
        abort(400, description='Department with this name already exists')
    d = Department(name=name, type=data['type'])
    session.add(d)
    session.commit()
    return {'success': True, 'data': _dept_json(d)}, 201


@dept_bp.put('/<int:dept_id>')
@require_permissions('DEPT.MANAGE')
@audit_log('DEPT.UPDATE', entity='Department', entity_id_arg='dept_id', meta_keys=['name', 'type'])
def update_department(dept_id: int):
    session = get_db()
    d = session.get(Department, dept_id)
    if not d:
        abort(404, description='Department not found')
    data = request.json or {}
    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            abort(400, description='name cannot be empty')
        if _name_taken(session, name, exclude_id=d.id):
            abort(400, description='Department with this name already exists')
        d.name = name
    if 'type' in data:
        d.type = validate_choice(data['type'], Department.ALL_TYPES, 'type')
    session.commit()
    return {'success': True, 'data': _dept_json(d)}


@dept_bp.delete('/<int:dept_id>')
@require_permissions('DEPT.MANAGE')
@audit_log('DEPT.DELETE', entity='Department', entity_id_arg='dept_id', meta_keys=['name'])
def delete_department(dept_id: int):
    session = get_db()
    d = session.get(Department, dept_id)
    if not d:
        abort(404, description='Department not found')
    in_use = session.execute(select(func.count(Asset.id)).where(Asset.department_id == d.id)).scalar_one()
    if in_use:
        abort(409, description=f'Department has {in_use} assets; reassign or delete them first')
    name = d.name
    for u in list(d.users):
        u.department_id = None
    session.delete(d)
    session.commit()
    return {'success': True, 'message': 'Department deleted successfully', 'data': {'id': dept_id, 'name': name}}


def _dept_json(d: Department):
    return {
        'id': d.id,
        'name': d.name,
        'type': d.type,
    }
