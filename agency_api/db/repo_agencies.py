"""Agency (tenant) lookups.

These are the trusted lookups that turn client-supplied scope identifiers
(slugs, team-member ids) into tenant ids before authorization.
"""

from typing import Optional

from sqlalchemy.orm import Session

from agency_api.db.models import Agency, TeamMember


class AgencyRepository:
    """Read-only access to the agencies table and agency-scoped roster."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, agency_id: str) -> Optional[Agency]:
        return self.db.query(Agency).filter(Agency.id == agency_id).first()

    def get_by_slug(self, slug: str) -> Optional[Agency]:
        return self.db.query(Agency).filter(Agency.slug == slug).first()

    def resolve_slug(self, slug: str) -> Optional[str]:
        """Return the agency id for ``slug``, or None if no agency has it."""
        agency = self.get_by_slug(slug.strip().lower())
        return agency.id if agency else None

    def get_team_member(self, agency_id: str, team_member_id: str) -> Optional[TeamMember]:
        """Fetch a team member, scoped to ``agency_id``."""
        return (
            self.db.query(TeamMember)
            .filter(
                TeamMember.id == team_member_id,
                TeamMember.agency_id == agency_id,
            )
            .first()
        )
