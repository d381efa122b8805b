#!/usr/bin/env python
"""Idempotent seed script for departments, the two role accounts and sample assets.

Usage:
    python backend/scripts/seed_demo.py                # seed normally
    python backend/scripts/seed_demo.py --no-assets    # departments and users only
    python backend/scripts/seed_demo.py --dry-run      # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from datetime import date
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from assetflow import create_app, get_db  # type: ignore
from assetflow.constants.permissions import ROLE_ADMIN, ROLE_OFFICER
from assetflow.models.asset import Asset
from assetflow.models.authz import User, Base
from assetflow.models.department import Department
from assetflow.services.totals import normalize_items, refresh_asset_totals

DEPARTMENTS = [
    ('Department of Civil Engineering', Department.TYPE_MAJOR),
    ('Department of Computer Science and Engineering (CSE)', Department.TYPE_MAJOR),
    ('Department of Electronics and Communication Engineering (ECE)', Department.TYPE_MAJOR),
    ('Department of Electrical and Electronics Engineering (EEE)', Department.TYPE_MAJOR),
    ('Department of Information Science and Engineering (ISE)', Department.TYPE_MAJOR),
    ('Department of Mechanical Engineering', Department.TYPE_MAJOR),
    ('Department of Artificial Intelligence and Machine Learning (AIML, under CSE)', Department.TYPE_MAJOR),
    ('Department of First Year Engineering', Department.TYPE_ACADEMIC),
    ('Department of Chemistry', Department.TYPE_ACADEMIC),
    ('Department of Physics', Department.TYPE_ACADEMIC),
    ('Department of Mathematics', Department.TYPE_ACADEMIC),
    ('Department of Electrical Maintenance', Department.TYPE_SERVICE),
    ('Department of Civil Maintenance', Department.TYPE_SERVICE),
    ('Office Administration', Department.TYPE_SERVICE),
    ('Central Library', Department.TYPE_SERVICE),
    ('Department of Sports and Physical Education', Department.TYPE_SERVICE),
    ("Boys' Hostel Administration", Department.TYPE_SERVICE),
    ("Girls' Hostel Administration", Department.TYPE_SERVICE),
]

SAMPLE_ASSETS = [
    {
        'bill_no': 'DEMO-001', 'vendor_name': 'Tech Solutions Pvt Ltd', 'type': Asset.TYPE_CAPITAL,
        'bill_date': date(2025, 1, 15),
        'items': [
            {'particulars': 'Desktop Computer', 'serialNumber': 'DC-1001', 'quantity': 5, 'rate': 45000, 'cgst': 9, 'sgst': 9},
            {'particulars': 'UPS 1kVA', 'serialNumber': 'UPS-77', 'quantity': 5, 'rate': 6500, 'cgst': 9, 'sgst': 9},
        ],
    },
    {
        'bill_no': 'DEMO-002', 'vendor_name': 'Office Mart', 'type': Asset.TYPE_REVENUE,
        'bill_date': date(2025, 2, 3),
        'items': [
            {'particulars': 'A4 Paper Ream', 'quantity': 40, 'rate': 260, 'cgst': 6, 'sgst': 6},
        ],
    },
]


def ensure_departments(session):
    existing = {d.name for d in session.execute(select(Department)).scalars().all()}
    created = 0
    for name, type_ in DEPARTMENTS:
        if name not in existing:
            session.add(Department(name=name, type=type_))
            created += 1
    session.flush()
    return created


def ensure_user(session, name, email, password, role, department_id=None):
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user:
        return user, False
    user = User(name=name, email=email, password_hash='', role=role, department_id=department_id)
    user.set_password(password)
    session.add(user)
    session.flush()
    return user, True


def ensure_users(session):
    first_dept = session.execute(select(Department).where(Department.name == DEPARTMENTS[0][0])).scalar_one()
    admin_email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com')
    admin, admin_new = ensure_user(session, 'Admin User', admin_email,
                                   os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'), ROLE_ADMIN)
    if admin_new:
        print(f"[INFO] Created initial admin user {admin_email} with temporary password.")
    officer, _ = ensure_user(session, 'Department Officer', os.getenv('SEED_OFFICER_EMAIL', 'officer@example.com'),
                             os.getenv('SEED_OFFICER_PASSWORD', 'ChangeMe123!'), ROLE_OFFICER, first_dept.id)
    return admin, officer


def ensure_sample_assets(session, officer):
    existing = set(session.execute(select(Asset.bill_no).where(Asset.bill_no.like('DEMO-%'))).scalars().all())
    created = 0
    for spec in SAMPLE_ASSETS:
        if spec['bill_no'] in existing:
            continue
        asset = Asset(
            department_id=officer.department_id,
            category=spec['type'],
            type=spec['type'],
            vendor_name=spec['vendor_name'],
            bill_no=spec['bill_no'],
            bill_date=spec['bill_date'],
            items=normalize_items(spec['items']),
            created_by=officer.id,
        )
        refresh_asset_totals(asset)
        session.add(asset)
        created += 1
    session.flush()
    return created


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed departments, users and sample assets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_demo.py\n  dry run: seed_demo.py --dry-run\n""")
    )
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--no-assets', action='store_true', help='Skip the sample assets')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            # Ensure tables exist (lightweight fallback if migrations not run yet)
            session.execute(text('SELECT 1 FROM departments LIMIT 1'))
        except Exception:
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        try:
            created_d = ensure_departments(session)
            _, officer = ensure_users(session)
            created_a = 0 if args.no_assets else ensure_sample_assets(session, officer)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Departments would create: {created_d}, Assets would create: {created_a}")
            else:
                session.commit()
                print(f"[DONE] Departments created: {created_d}, Assets created: {created_a}")
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
