from sqlalchemy import (
    BigInteger, Column, DateTime, ForeignKey, Index,
    Integer, String, func, text
)
from sqlalchemy.orm import relationship

from .base import Base, JSONType, generate_id


class Product(Base):
    __tablename__ = 'product'

    id = Column(String(36), primary_key=True, default=generate_id)
    version = Column(BigInteger, server_default=text("0"))
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    name = Column(String(255), nullable=False)
    category = Column(String(255))
    description = Column(String(4096))
    image_url = Column(String(2048))
    video_url = Column(String(2048))
    pdf_url = Column(String(2048))
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False, index=True)
    # Read model derived from module_access; recomputed on every access mutation
    user_access_ids = Column(JSONType, nullable=False, default=list)

    # Relationships
    seller = relationship('User', back_populates='products')
    modules = relationship(
        "Module",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Module.order",
        uselist=True,
        lazy="select"
    )


class Module(Base):
    __tablename__ = 'module'
    __table_args__ = (
        Index('module_course_id_order_idx', 'course_id', 'order'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    version = Column(BigInteger, server_default=text("0"))
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    title = Column(String(255), nullable=False)
    description = Column(String(4096))
    order = Column(Integer, nullable=False, server_default=text("0"))
    course_id = Column(ForeignKey('product.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)

    # Relationships
    course = relationship('Product', back_populates='modules')
    lessons = relationship(
        "Lesson",
        back_populates="module",
        cascade="all, delete-orphan",
        order_by="Lesson.order",
        uselist=True,
        lazy="select"
    )
    access = relationship("ModuleAccess", back_populates="module", cascade="all, delete-orphan", uselist=True, lazy="select")


class Lesson(Base):
    __tablename__ = 'lesson'
    __table_args__ = (
        Index('lesson_module_id_order_idx', 'module_id', 'order'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    version = Column(BigInteger, server_default=text("0"))
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    title = Column(String(255), nullable=False)
    content = Column(String(16384))
    video_url = Column(String(2048))
    order = Column(Integer, nullable=False, server_default=text("0"))
    module_id = Column(ForeignKey('module.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)

    module = relationship('Module', back_populates='lessons')


class ModuleAccess(Base):
    __tablename__ = 'module_access'

    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    module_id = Column(ForeignKey('module.id', ondelete='CASCADE'), primary_key=True, nullable=False, index=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    created_by = Column(String(36))

    user = relationship('User', back_populates='module_access')
    module = relationship('Module', back_populates='access')
