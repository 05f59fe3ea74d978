from sqlalchemy.orm import Session
from bizdesk.models.activity import ActivityFeed


class ActivityRepository:
    """Repository for the append-only activity feed"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, entry: ActivityFeed) -> ActivityFeed:
        """Append an entry"""
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def get_recent(self, limit: int = 50, entity_type: str | None = None) -> list[ActivityFeed]:
        """Most recent entries first"""
        query = self.db.query(ActivityFeed)
        if entity_type is not None:
            query = query.filter(ActivityFeed.entity_type == entity_type)
        return (
            query.order_by(ActivityFeed.created_at.desc(), ActivityFeed.id.desc())
            .limit(limit)
            .all()
        )
