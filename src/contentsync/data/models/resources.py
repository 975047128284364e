"""
Resource Records

One explicit record type per content collection. Every field except
`id` is optional because the remote schema is not strictly enforced;
unexpected columns are kept (extra="allow") rather than rejected.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

RowId = Union[int, str]


class Row(BaseModel):
    """Base record: a row of a named collection"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: RowId
    created_at: Optional[str] = None


class Project(Row):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None  # 'planifie' | 'en_cours' | 'termine'
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    manager: Optional[str] = None
    partner_id: Optional[str] = None
    document_url: Optional[str] = None  # JSON list of references, see core.attachments
    image_url: Optional[str] = None


class ProjectTask(Row):
    project_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None  # 'en_cours' | 'terminee'
    due_date: Optional[str] = None
    completed_at: Optional[str] = None
    comment: Optional[str] = None
    document_url: Optional[str] = None


class ProjectDocument(Row):
    """Child-table form of a project's attachments"""
    project_id: Optional[int] = None
    file_url: Optional[str] = None
    title: Optional[str] = None


class Report(Row):
    title: Optional[str] = None
    description: Optional[str] = None
    fileUrl: Optional[str] = None
    date: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None


class Video(Row):
    title: Optional[str] = None
    description: Optional[str] = None
    videourl: Optional[str] = None
    filepath: Optional[str] = None
    thumbnailpath: Optional[str] = None
    date: Optional[str] = None


class NewsArticle(Row):
    title: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None
    image2: Optional[str] = None
    category: Optional[str] = None
    date: Optional[str] = None
    status: Optional[str] = None  # 'draft' | 'published'


class TeamMember(Row):
    name: Optional[str] = None
    position: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None


class Faq(Row):
    question: Optional[str] = None
    answer: Optional[str] = None


class Submission(Row):
    civility: Optional[str] = None
    fullname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    interest: Optional[str] = None
    skills: Optional[str] = None
    motivation: Optional[str] = None
    cv_url: Optional[str] = None
    captcha: Optional[bool] = None


class NewsletterSubscriber(Row):
    email: Optional[str] = None


class Document(Row):
    title: Optional[str] = None
    description: Optional[str] = None
    file_url: Optional[str] = None
    category: Optional[str] = None
    updated_at: Optional[str] = None


class UserProfile(Row):
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None
    updated_at: Optional[str] = None
    is_active: Optional[bool] = None


class ActionEntry(Row):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    date: Optional[str] = None


class Notification(Row):
    user_id: Optional[str] = None
    actor_id: Optional[str] = None
    actor_name: Optional[str] = None
    actor_role: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    link: Optional[str] = None
    read: Optional[bool] = None
