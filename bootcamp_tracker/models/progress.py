"""Progress ledger models"""
from enum import Enum
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class ModuleStatus(str, Enum):
    """Status of a module for one learner"""
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class ProgressRecord(BaseModel):
    """
    One entry of a learner's ledger.

    Stored in the user document with camelCase keys (moduleId, startedAt, updatedAt).
    """
    model_config = ConfigDict(populate_by_name=True)

    module_id: int = Field(..., alias="moduleId")
    status: ModuleStatus
    started_at: datetime = Field(..., alias="startedAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
