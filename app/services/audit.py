"""
Activity log helpers.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.activity import Activity, ActivityAction


def record_activity(
    session: Session,
    entity_type: str,
    entity_id: UUID,
    action: ActivityAction,
    description: str,
    user_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Activity:
    """Append one audit entry to the current unit of work. Metadata must be JSON-safe."""
    activity = Activity(
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        action=action,
        description=description,
        activity_metadata=metadata,
    )
    session.add(activity)
    return activity
