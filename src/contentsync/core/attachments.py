"""
Attachment List Codec

The remote schema stores what is conceptually a list of attachment
references in a single text column (e.g. `projects.document_url`).
Newer rows hold a JSON array of strings; rows written before the list
form existed hold one bare reference.

The legacy decode path and `migrate_legacy_attachments()` are a
temporary migration shim. Once every parent's attachments live in a
child table (one row per attachment keyed by parent id), the scalar
column and this shim go away.
"""

import json
import logging
from typing import Any, Iterable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..data.repos.store import ResourceStore

logger = logging.getLogger(__name__)


def decode_attachments(text: Optional[str]) -> List[str]:
    """
    Decode the scalar attachment column into a list.

    - empty / None -> []
    - JSON array of strings -> that list
    - anything else -> [text] (legacy single reference)
    """
    if not text:
        return []
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return [text]
    if isinstance(parsed, list) and all(isinstance(item, str) for item in parsed):
        return parsed
    # Valid JSON but not a list of strings: keep the raw value, don't drop data
    return [text]


def encode_attachments(items: Optional[Iterable[str]]) -> Optional[str]:
    """Encode a list for the scalar column; an empty list becomes None"""
    values = list(items or [])
    if not values:
        return None
    return json.dumps(values)


async def migrate_legacy_attachments(
    parent: Any,
    attachment_store: "ResourceStore",
    source_field: str = "document_url",
    parent_field: str = "project_id",
    url_field: str = "file_url",
) -> int:
    """
    Copy one parent row's scalar attachments into a child-table store.

    Creates one child row per decoded reference that is not already
    present for this parent. Returns the number of rows created.
    Temporary: delete together with the legacy decode path.
    """
    raw = getattr(parent, source_field, None)
    references = decode_attachments(raw)
    existing = {
        getattr(row, url_field, None)
        for row in attachment_store.rows
        if getattr(row, parent_field, None) == parent.id
    }

    created = 0
    for reference in references:
        if reference in existing:
            continue
        await attachment_store.create({parent_field: parent.id, url_field: reference})
        existing.add(reference)
        created += 1

    if created:
        logger.info(
            f"Migrated {created} attachment(s) of {attachment_store.resource} parent {parent.id}"
        )
    return created
