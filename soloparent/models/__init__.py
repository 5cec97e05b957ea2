"""ORM models. Importing this package registers every table on Base.metadata."""

from soloparent.models.document import (
    BarangayCertDocument,
    CenomarDocument,
    DeathCertDocument,
    DocumentMixin,
    ItrDocument,
    MarriageDocument,
    MedCertDocument,
    PsaDocument,
)
from soloparent.models.event import Attendee, Event, EventRating, EventRead
from soloparent.models.notification import (
    AcceptedUser,
    AdminNotification,
    DeclinedUser,
    FollowUpDocument,
    SuperadminNotification,
    TerminatedUser,
    UserChildRequestNotice,
    UserRemark,
)
from soloparent.models.records import Announcement, ChildRequest, ExportLimit, UserIdCard
from soloparent.models.user import (
    Admin,
    Classification,
    FamilyMember,
    IdentifyingInformation,
    Superadmin,
    User,
)

__all__ = [
    "AcceptedUser",
    "Admin",
    "AdminNotification",
    "Announcement",
    "Attendee",
    "BarangayCertDocument",
    "CenomarDocument",
    "ChildRequest",
    "Classification",
    "DeathCertDocument",
    "DeclinedUser",
    "DocumentMixin",
    "Event",
    "EventRating",
    "EventRead",
    "ExportLimit",
    "FamilyMember",
    "FollowUpDocument",
    "IdentifyingInformation",
    "ItrDocument",
    "MarriageDocument",
    "MedCertDocument",
    "PsaDocument",
    "Superadmin",
    "SuperadminNotification",
    "TerminatedUser",
    "User",
    "UserChildRequestNotice",
    "UserIdCard",
    "UserRemark",
]
