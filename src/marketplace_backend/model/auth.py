from sqlalchemy import (
    BigInteger, Column, DateTime, Enum, String, func, text
)
from sqlalchemy.orm import relationship

from .base import Base, JSONType, generate_id


class User(Base):
    __tablename__ = 'user'

    id = Column(String(36), primary_key=True, default=generate_id)
    version = Column(BigInteger, server_default=text("0"))
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    password = Column(String(255), nullable=False)
    role = Column(Enum('USER', 'VENDEDOR', name='user_role'), nullable=False, server_default=text("'USER'"))
    # Read model derived from module_access; recomputed on every access mutation
    accessible_course_ids = Column(JSONType, nullable=False, default=list)

    # Relationships
    products = relationship("Product", back_populates="seller", uselist=True, lazy="select")
    module_access = relationship("ModuleAccess", back_populates="user", cascade="all, delete-orphan", uselist=True, lazy="select")
