import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class AppRole(str, enum.Enum):
    ADMIN = "admin"
    PARENT = "parent"


# Credential store of the local auth provider
class AuthIdentity(Base):
    __tablename__ = "auth_identities"

    id = Column(Integer, primary_key=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    phone_or_username = Column(String(50), unique=True, nullable=False, index=True)
    # Empty until the first login creates the identity
    auth_id = Column(Integer, ForeignKey("auth_identities.id"), nullable=True)
    must_change_password = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    roles = relationship("UserRole", back_populates="user")
    student_links = relationship("UserStudent", back_populates="user")

    def role_names(self):
        return {r.role.value for r in self.roles}

    def __repr__(self):
        return f"<User {self.phone_or_username}>"


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    role = Column(
        Enum(AppRole, name="app_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    user = relationship("User", back_populates="roles")


# Parent account -> student it may view
class UserStudent(Base):
    __tablename__ = "user_students"
    __table_args__ = (
        UniqueConstraint("user_id", "student_id", name="uq_user_students_user_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)

    user = relationship("User", back_populates="student_links")
    student = relationship("models.students.Student")
