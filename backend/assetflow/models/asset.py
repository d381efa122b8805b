from __future__ import annotations
from datetime import date, datetime
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy import Integer, String, Float, Date, ForeignKey, DateTime, JSON, Text, text
from typing import Any, Dict, List, Optional

from .authz import Base


class Asset(Base):
    __tablename__ = 'assets'
    # Asset types
    TYPE_CAPITAL = 'capital'
    TYPE_REVENUE = 'revenue'
    ALL_TYPES = (TYPE_CAPITAL, TYPE_REVENUE)
    # Update request lifecycle
    UPDATE_NONE = 'none'
    UPDATE_PENDING = 'pending'
    UPDATE_APPROVED = 'approved'
    UPDATE_REJECTED = 'rejected'
    ALL_UPDATE_STATUSES = (UPDATE_NONE, UPDATE_PENDING, UPDATE_APPROVED, UPDATE_REJECTED)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    department_id: Mapped[int] = mapped_column(ForeignKey('departments.id'), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default=TYPE_CAPITAL)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=TYPE_CAPITAL, index=True)
    item_name: Mapped[Optional[str]] = mapped_column(String(255))
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    price_per_item: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    vendor_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    vendor_address: Mapped[Optional[str]] = mapped_column(String(512))
    contact_number: Mapped[Optional[str]] = mapped_column(String(32))
    email: Mapped[Optional[str]] = mapped_column(String(128))
    bill_no: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    bill_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    bill_file_id: Mapped[Optional[int]] = mapped_column(ForeignKey('bill_files.id', ondelete='SET NULL'), nullable=True)
    college_isr_no: Mapped[Optional[str]] = mapped_column(String(64))
    it_isr_no: Mapped[Optional[str]] = mapped_column(String(64))
    igst: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    cgst: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    sgst: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    grand_total: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    remark: Mapped[Optional[str]] = mapped_column(Text)
    items: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Embedded update request; see services.update_requests.workflow_state
    update_request_status: Mapped[str] = mapped_column(String(16), nullable=False, default=UPDATE_NONE, index=True)
    requested_fields: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    temp_values: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    requested_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    requested_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    admin_remarks: Mapped[str] = mapped_column(Text, nullable=False, default='')

    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    department = relationship('Department', back_populates='assets')
    requester = relationship('User', foreign_keys=[requested_by])
    reviewer = relationship('User', foreign_keys=[reviewed_by])

    # Every UPDATE carries "WHERE version = <loaded>"; a concurrent writer raises StaleDataError
    __mapper_args__ = {'version_id_col': version}
