"""SQLAlchemy ORM models for the agency back office.

The managed database owns the schema (and its row-level-security policies);
these models mirror the tables this service reads and writes.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import BOOLEAN, DATE, JSON, TEXT, TIMESTAMP, ForeignKey, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Agency(Base):
    """Tenant. Every scoped row carries exactly one agency_id."""

    __tablename__ = "agencies"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    slug: Mapped[str] = mapped_column(TEXT, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )


class Profile(Base):
    """Profile row of a platform (Supabase auth) user."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True)  # = auth.users.id
    role: Mapped[str] = mapped_column(TEXT, nullable=False, default="user")
    agency_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("agencies.id"), nullable=True
    )
    full_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)


class TeamMember(Base):
    """Roster entry inside an agency (Sales, Service, Manager, Owner...)."""

    __tablename__ = "team_members"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    role: Mapped[str] = mapped_column(TEXT, nullable=False, default="Sales")
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default="active")

    __table_args__ = (Index("idx_team_members_agency", "agency_id"),)


class StaffUser(Base):
    """Tenant-scoped identity authenticated by custom staff sessions."""

    __tablename__ = "staff_users"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    username: Mapped[str] = mapped_column(TEXT, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    team_member_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("team_members.id"), nullable=True
    )

    team_member: Mapped[Optional[TeamMember]] = relationship(lazy="joined")

    __table_args__ = (Index("idx_staff_users_agency", "agency_id"),)


class StaffSession(Base):
    """Opaque bearer secret mapped to a staff user, with expiry and validity flag."""

    __tablename__ = "staff_sessions"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    session_token: Mapped[str] = mapped_column(TEXT, nullable=False, unique=True)
    staff_user_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("staff_users.id"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    is_valid: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )

    staff_user: Mapped[Optional[StaffUser]] = relationship(lazy="joined")


class AgencyContact(Base):
    """Customer or prospect in an agency's contact book."""

    __tablename__ = "agency_contacts"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    __table_args__ = (Index("idx_agency_contacts_agency", "agency_id"),)


class Sale(Base):
    """Policy sale recorded by the agency."""

    __tablename__ = "sales"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    sale_date: Mapped[Optional[date]] = mapped_column(DATE, nullable=True)

    __table_args__ = (Index("idx_sales_agency", "agency_id"),)


class OnboardingSequence(Base):
    """Template of follow-up tasks that can be assigned to a customer."""

    __tablename__ = "onboarding_sequences"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)


class OnboardingInstance(Base):
    """One assignment of a sequence to a customer, owned by an assignee."""

    __tablename__ = "onboarding_instances"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    sequence_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("onboarding_sequences.id"), nullable=False
    )
    assigned_to_staff_user_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    assigned_to_user_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    assigned_by_user_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    assigned_by_staff_user_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    contact_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    sale_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    customer_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    start_date: Mapped[date] = mapped_column(DATE, nullable=False)
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (Index("idx_onboarding_instances_agency", "agency_id"),)


class RenewalRecord(Base):
    """Upcoming policy renewal tracked by the agency."""

    __tablename__ = "renewal_records"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    policy_number: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    current_status: Mapped[str] = mapped_column(TEXT, nullable=False, default="uncontacted")
    renewal_status: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    last_activity_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    last_activity_by_display_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    __table_args__ = (Index("idx_renewal_records_agency", "agency_id"),)


class RenewalActivity(Base):
    """Call, email or note logged against a renewal record."""

    __tablename__ = "renewal_activities"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    renewal_record_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("renewal_records.id"), nullable=False
    )
    activity_type: Mapped[str] = mapped_column(TEXT, nullable=False)
    activity_status: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    subject: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    scheduled_date: Mapped[Optional[date]] = mapped_column(DATE, nullable=True)
    assigned_team_member_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    created_by_display_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )


class SavedReport(Base):
    """Report snapshot saved by a platform user."""

    __tablename__ = "saved_reports"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    agency_id: Mapped[str] = mapped_column(TEXT, ForeignKey("agencies.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(TEXT, nullable=False)
    title: Mapped[str] = mapped_column(TEXT, nullable=False)
    report_type: Mapped[str] = mapped_column(TEXT, nullable=False)
    input_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    results_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )
