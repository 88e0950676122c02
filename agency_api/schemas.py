"""Pydantic schemas for API requests/responses."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class RequestModel(BaseModel):
    """Base for request bodies: strings trimmed, unknown keys ignored."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


# ============================================================================
# Error body (uniform for every non-2xx response)
# ============================================================================


class ErrorBody(BaseModel):
    """Error response body."""

    error: str = Field(..., description="Human-readable, non-internal message")


# ============================================================================
# POST /functions/v1/get_team_member
# ============================================================================


class TeamMemberRequest(RequestModel):
    agency_slug: str = Field(..., min_length=1, description="Agency slug (re-resolved server-side)")
    team_member_id: str = Field(..., min_length=1)


class TeamMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    agency_id: str
    name: str
    email: Optional[str] = None
    role: str
    status: str


class TeamMemberResponse(BaseModel):
    team_member: TeamMemberOut


# ============================================================================
# POST /functions/v1/assign_onboarding_sequence
# ============================================================================


class AssignSequenceRequest(RequestModel):
    """Assign an onboarding sequence to a customer.

    Exactly one assignee (staff user or platform user) and at least one
    subject (contact or sale) are required.
    """

    sequence_id: str = Field(..., min_length=1)
    start_date: date
    customer_name: str = Field(..., min_length=1)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    assigned_to_staff_user_id: Optional[str] = None
    assigned_to_user_id: Optional[str] = None
    contact_id: Optional[str] = None
    sale_id: Optional[str] = None

    @model_validator(mode="after")
    def check_assignee_and_subject(self) -> "AssignSequenceRequest":
        if not self.assigned_to_staff_user_id and not self.assigned_to_user_id:
            raise ValueError(
                "Either assigned_to_staff_user_id or assigned_to_user_id must be provided"
            )
        if self.assigned_to_staff_user_id and self.assigned_to_user_id:
            raise ValueError(
                "Provide only one of assigned_to_staff_user_id or assigned_to_user_id, not both"
            )
        if not self.contact_id and not self.sale_id:
            raise ValueError("Either contact_id or sale_id must be provided")
        return self


class AssignSequenceResponse(BaseModel):
    instance_id: str
    sequence_id: str
    sequence_name: str
    agency_id: str
    start_date: date
    status: str


# ============================================================================
# POST /functions/v1/log_staff_renewal_activity
# ============================================================================


class RenewalActivityRequest(RequestModel):
    """Accepts snake_case keys and the camelCase keys the dashboard sends."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", populate_by_name=True)

    renewal_record_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("renewal_record_id", "renewalRecordId")
    )
    activity_type: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("activity_type", "activityType")
    )
    activity_status: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("activity_status", "activityStatus")
    )
    subject: Optional[str] = None
    comments: Optional[str] = None
    scheduled_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("scheduled_date", "scheduledDate")
    )
    assigned_team_member_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("assigned_team_member_id", "assignedTeamMemberId")
    )
    update_record_status: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("update_record_status", "updateRecordStatus")
    )
    mark_as_successful: bool = Field(
        default=False, validation_alias=AliasChoices("mark_as_successful", "markAsSuccessful")
    )


class RenewalActivityResponse(BaseModel):
    activity_id: str
    renewal_record_id: str
    current_status: str
    renewal_status: Optional[str] = None


# ============================================================================
# POST /functions/v1/save-report
# ============================================================================


class SaveReportRequest(RequestModel):
    title: str = Field(..., min_length=1, max_length=200)
    report_type: str = Field(..., min_length=1)
    input_data: dict[str, Any]
    results_data: Optional[dict[str, Any]] = None
    agency_slug: Optional[str] = Field(
        default=None, description="Target agency (admins only; defaults to caller's agency)"
    )


class SaveReportResponse(BaseModel):
    report_id: str
    agency_id: str
    title: str
    report_type: str
    created_at: datetime
