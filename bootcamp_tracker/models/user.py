"""User account models (the per-user document)"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from bootcamp_tracker.models.progress import ProgressRecord


class StudySession(BaseModel):
    """A completed study timer session"""
    model_config = ConfigDict(populate_by_name=True)

    date: datetime
    duration: int  # minutes
    mode: str = "focus"


class UserAccount(BaseModel):
    """
    User document as stored in the `users` collection.

    Field aliases match the stored camelCase keys. Missing keys fall back to the
    defaults a freshly registered account gets.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = "Anonymous"
    email: Optional[str] = None
    progress: List[ProgressRecord] = Field(default_factory=list)
    streak: int = Field(default=0, ge=0)
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")
    join_date: Optional[datetime] = Field(default=None, alias="joinDate")
    achievements: List[str] = Field(default_factory=list)
    study_sessions: List[StudySession] = Field(default_factory=list, alias="studySessions")
    total_study_time: int = Field(default=0, ge=0, alias="totalStudyTime")

    @classmethod
    def from_document(cls, user_id: str, data: dict) -> "UserAccount":
        """Build from stored document data; null fields and an empty name take their defaults"""
        # lastUpdated is null until the first status change
        cleaned = {key: value for key, value in data.items() if value is not None}
        cleaned.pop("id", None)
        if not cleaned.get("name"):
            cleaned.pop("name", None)
        return cls(id=user_id, **cleaned)

    def to_document(self) -> dict:
        """Serialize for storage (no id, camelCase keys, ISO timestamps)"""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})
