"""
User model for authentication, role-based access and task assignment.

Users are the authenticated principals of the task tracker. Administrators
create and assign tasks and manage other accounts; regular users work on the
tasks assigned to them.

Architecture:
    User → (assigned / created) Task → Photos, Comments
    User → UserDevice

Key Features:
    - Secure bcrypt password hashing
    - Unique, case-insensitive email identification
    - Role column restricted to admin/user
    - Per-device login tracking
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import relationship, validates

from app.models.base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    fk_target,
    schema_table_args,
)
from app.models.enums import UserRole, enum_values


class User(Base, UUIDMixin, TimestampMixin):
    """
    User account for authentication and task ownership.
    """

    __tablename__ = "users"
    __table_args__ = schema_table_args(
        Index("ix_users_email", "email", unique=True),
        Index("ix_users_role", "role"),
    )

    name = Column(
        String(100),
        nullable=False,
        comment="Display name shown next to assigned tasks and comments",
    )

    email = Column(
        String(255),
        nullable=False,
        comment="Unique lower-cased email used for login",
    )

    hashed_password = Column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password for secure authentication",
    )

    role = Column(
        String(20),
        nullable=False,
        default=UserRole.USER.value,
        comment="Access role: admin/user",
    )

    last_login = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="Timestamp of the most recent successful login",
    )

    devices = relationship(
        "UserDevice",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="UserDevice.last_login.desc()",
        doc="Devices this user has logged in from",
    )

    @validates("role")
    def validate_role(self, key, value):
        if isinstance(value, UserRole):
            value = value.value
        if value not in enum_values(UserRole):
            raise ValueError(f"Invalid role: {value}")
        return value

    @validates("email")
    def normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class UserDevice(Base, UUIDMixin):
    """
    A device (user agent + address) a user has logged in from.
    """

    __tablename__ = "user_devices"
    __table_args__ = schema_table_args(
        Index("ix_user_devices_user_id", "user_id"),
    )

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey(fk_target("users.id"), ondelete="CASCADE"),
        nullable=False,
        comment="Owner of this device record",
    )

    device_name = Column(
        String(255),
        nullable=False,
        default="Unknown device",
        comment="User-Agent reported at login",
    )

    ip_address = Column(
        String(64),
        nullable=False,
        default="unknown",
        comment="Client address reported at login",
    )

    last_login = Column(
        DateTime(timezone=True),
        nullable=False,
        comment="Most recent login from this device",
    )

    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether this device holds the most recent session",
    )

    user = relationship("User", back_populates="devices")

    def __repr__(self):
        return f"<UserDevice(user_id={self.user_id}, device='{self.device_name}')>"
