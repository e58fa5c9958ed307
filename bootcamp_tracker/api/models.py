"""Pydantic models for API request/response validation"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime

from bootcamp_tracker.models.progress import ModuleStatus


class RegisterRequest(BaseModel):
    """Request to create an account"""
    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password (minimum length from config)")
    display_name: Optional[str] = Field(
        default=None,
        description="Name shown on the leaderboard (defaults to the email prefix)"
    )


class LoginRequest(BaseModel):
    """Request to sign in"""
    email: str
    password: str


class LogoutRequest(BaseModel):
    """Request to end a session"""
    token: str = Field(..., description="Session token from register/login")


class AuthResponse(BaseModel):
    """Signed-in account"""
    uid: str
    email: str
    display_name: Optional[str] = None
    token: str


class StatusUpdateRequest(BaseModel):
    """Request to change a module's status"""
    status: ModuleStatus = Field(..., description="not-started, in-progress or completed")


class StatusUpdateResponse(BaseModel):
    """Result of a module status change"""
    user_id: str
    module_id: int
    status: ModuleStatus
    streak: int
    completion: int = Field(..., description="Overall course completion percentage")
    newly_unlocked: List[str] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)
    progress: List[Dict[str, Any]]


class StudySessionRequest(BaseModel):
    """Request to log a finished study timer session"""
    duration: int = Field(default=25, description="Session length in minutes")
    mode: str = Field(default="focus", description="focus or break")


class StudySummaryResponse(BaseModel):
    """Study time totals"""
    total_minutes: int
    hours: int
    minutes: int
    display: str
    session_count: int
    recent_sessions: List[Dict[str, Any]]


class LeaderboardEntry(BaseModel):
    """One leaderboard row"""
    id: str
    name: str
    completion: int
    completed_modules: int
    streak: int
    is_current_user: bool = False


class WeeklyActivityEntry(BaseModel):
    """One weekly-activity row"""
    id: str
    name: str
    this_week: int
    is_current_user: bool = False


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    store: str = Field(..., description="Document store status")
    backend: str = Field(..., description="Document store backend")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Internal error message")
    user_message: str = Field(..., description="Message safe to show to the learner")
    request_id: str
    timestamp: datetime
