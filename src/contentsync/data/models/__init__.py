"""Record types for content collections and actor profiles."""

from .profile import ActorProfile
from .resources import (
    Row,
    RowId,
    Project,
    ProjectTask,
    ProjectDocument,
    Report,
    Video,
    NewsArticle,
    TeamMember,
    Faq,
    Submission,
    NewsletterSubscriber,
    Document,
    UserProfile,
    ActionEntry,
    Notification,
)

__all__ = [
    "ActorProfile",
    "Row",
    "RowId",
    "Project",
    "ProjectTask",
    "ProjectDocument",
    "Report",
    "Video",
    "NewsArticle",
    "TeamMember",
    "Faq",
    "Submission",
    "NewsletterSubscriber",
    "Document",
    "UserProfile",
    "ActionEntry",
    "Notification",
]
