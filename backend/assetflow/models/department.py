from __future__ import annotations
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy import Integer, String, DateTime, text

from .authz import Base


class Department(Base):
    __tablename__ = 'departments'
    TYPE_MAJOR = 'Major'
    TYPE_ACADEMIC = 'Academic'
    TYPE_SERVICE = 'Service'
    ALL_TYPES = (TYPE_MAJOR, TYPE_ACADEMIC, TYPE_SERVICE)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    users = relationship('User', back_populates='department')
    assets = relationship('Asset', back_populates='department')
