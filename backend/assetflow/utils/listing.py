from __future__ import annotations
"""List endpoint plumbing: query-string filters, sort expressions, pagination
and ETag validators, so each route only declares what is specific to it.

Filter specs:
    {param: {'op': callable(query, value) -> query, 'coerce': callable, 'validate': callable}}
Sort expression:
    comma separated keys, '-' prefix for descending (``-billDate,vendorName``)
"""
import hashlib
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple
from flask import request, abort, make_response
from assetflow.config.pagination import normalize_pagination


def apply_filters(query, specs: Dict[str, Dict[str, Any]], params: Mapping[str, Any]):
    for name, meta in specs.items():
        val = params.get(name)
        if val in (None, ''):
            continue
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except Exception:
                abort(400, description=f'{name} invalid')
            if val is None:
                abort(400, description=f'{name} invalid')
        if 'validate' in meta and not meta['validate'](val):
            abort(400, description=f'{name} invalid')
        query = meta['op'](query, val)
    return query


def apply_sort(query, sort_expr: Optional[str], allowed: Dict[str, Any], tie_breaker, default=None):
    """Order by the requested keys, always ending with tie_breaker for stable pages."""
    if not sort_expr:
        clauses = list(default or [])
        return query.order_by(*clauses, tie_breaker.asc())
    clauses = []
    for raw in sort_expr.split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token[1:] if desc else token
        col = allowed.get(key)
        if col is None:
            abort(400, description=f'Invalid sort field {key}')
        clauses.append(col.desc() if desc else col.asc())
    clauses.append(tie_breaker.asc())
    return query.order_by(*clauses)


def apply_pagination(q) -> Tuple[Any, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


def compute_etag(ids: Iterable[Any], total: int, limit: int, offset: int, versions: Iterable[Any] = ()) -> str:
    seed = f"{list(ids)}|{list(versions)}|{total}|{limit}|{offset}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'success': True,
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows),
        }
    }


def make_list_response(rows: list, total: int, limit: int, offset: int, version_key: str = 'version'):
    """JSON list response with an ETag; 304 when If-None-Match matches."""
    etag = compute_etag([r.get('id') for r in rows], total, limit, offset, [r.get(version_key) for r in rows])
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag:
        resp = make_response('', 304)
    else:
        resp = make_response(build_list_payload(rows, total, limit, offset))
    resp.headers['ETag'] = etag
    return resp


def list_response(query, serializer: Callable[[Any], dict], version_key: str = 'version'):
    paged_q, total, limit, offset = apply_pagination(query)
    rows = [serializer(r) for r in paged_q.all()]
    return make_list_response(rows, total, limit, offset, version_key)

__all__ = ['apply_filters', 'apply_sort', 'apply_pagination', 'compute_etag', 'build_list_payload', 'make_list_response', 'list_response']
