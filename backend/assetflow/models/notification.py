from __future__ import annotations
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy import Integer, String, Boolean, ForeignKey, DateTime, Text, func
from typing import Optional

from .authz import Base


class Notification(Base):
    __tablename__ = 'notifications'
    TYPE_UPDATE_REQUESTED = 'update_requested'
    TYPE_UPDATE_APPROVED = 'update_approved'
    TYPE_UPDATE_REJECTED = 'update_rejected'
    ALL_TYPES = (TYPE_UPDATE_REQUESTED, TYPE_UPDATE_APPROVED, TYPE_UPDATE_REJECTED)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recipient_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    asset_id: Mapped[Optional[int]] = mapped_column(ForeignKey('assets.id', ondelete='SET NULL'), nullable=True)
    bill_no: Mapped[Optional[str]] = mapped_column(String(64))
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now())

    creator = relationship('User', foreign_keys=[created_by])
