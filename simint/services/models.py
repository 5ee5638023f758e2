from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for backend payloads: unknown fields are kept, not rejected."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class LoginResponse(ApiModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None
    role: Optional[str] = None


class Sector(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True


class SettingItem(ApiModel):
    key: str
    value: str
    description: str = ""
    is_public: bool = False


class DashboardKPIs(ApiModel):
    total_users: int = 0
    new_users_30d: int = 0
    total_interviews: int = 0
    completed_interviews: int = 0
    completion_rate: float = 0.0


class ActivityPoint(ApiModel):
    date: str
    count: int


class SectorShare(ApiModel):
    name: str
    value: float


class RecentActivity(ApiModel):
    id: str
    user_name: str = ""
    user_email: str = ""
    date: str = ""
    status: str = ""
    score: Optional[float] = None
    type: str = ""


class DashboardCharts(ApiModel):
    activity_30d: List[ActivityPoint] = Field(default_factory=list)
    sectors: List[SectorShare] = Field(default_factory=list)


class DashboardData(ApiModel):
    kpis: DashboardKPIs = Field(default_factory=DashboardKPIs)
    charts: DashboardCharts = Field(default_factory=DashboardCharts)
    recent_activity: List[RecentActivity] = Field(default_factory=list)


class LegalDocument(ApiModel):
    id: Optional[str] = None
    slug: str
    title: str = ""
    content: str = ""
    locale: str = "fr"
    updated_at: Optional[str] = None
    is_active: bool = True


class InterviewAsset(ApiModel):
    id: str
    type: str
    name: str
    country_code: str
    image_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Decor(ApiModel):
    id: str
    name: str
    country: str
    image: Optional[str] = None
    is_active: bool = Field(default=True, alias="isActive")
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class JobSheet(ApiModel):
    id: Optional[str] = None
    title: str
    sector: str = ""
    description: str = ""
    skills_required: List[str] = Field(default_factory=list)
    missions: List[str] = Field(default_factory=list)
    qualifications: str = ""
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    currency: str = "EUR"
    language: str = "fr"
    is_template: bool = False


class User(ApiModel):
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    interview_count: int = 0
    average_score: Optional[float] = None


class AgendaEvent(ApiModel):
    id: str
    user_id: str
    title: str = ""
    description: str = ""
    event_type: str = ""
    start_time: str
    end_time: str
    status: str = "scheduled"
    interview_session_id: Optional[str] = None


class Page(ApiModel, Generic[T]):
    items: List[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    size: int = 0
    pages: int = 0


JsonDict = Dict[str, Any]
