"""
SQLAlchemy ORM models for the Book Companion database.
Stores reader profiles, onboarding preferences and cached personalised explanations.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from app.database import Base


class User(Base):
    """Reader account (synced from the external auth provider)."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)  # matches the auth provider's user id
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    image = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class UserPreferences(Base):
    """Onboarding answers used to personalise explanations."""

    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    # No foreign key: preferences may be saved before the users row is synced
    user_id = Column(String(255), nullable=False, unique=True, index=True)
    ai_experience = Column(String(100), nullable=True)
    coding_experience = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Explanation(Base):
    """Personalised HTML explanation of a page, cached per (user, page)."""

    __tablename__ = "explanations"
    __table_args__ = (
        UniqueConstraint("user_id", "page_path", "page_title", name="uq_explanation_user_page"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    page_path = Column(String(512), nullable=False)
    page_title = Column(String(512), nullable=False)
    content = Column(Text, nullable=False)  # HTML fragment
    ai_level = Column(String(100), nullable=True)
    coding_level = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
