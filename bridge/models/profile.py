"""
Startup Profile Model
One founder profile per user
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from bridge.core.database import Base
from bridge.utils.datetime_utils import utcnow, isoformat

INDUSTRIES = ("technology", "healthcare", "fintech", "ecommerce", "education", "food", "other")
STAGES = ("idea", "validation", "mvp", "launch", "growth")
TEAM_SIZES = ("1", "2-5", "6-10", "11-25", "25+")
REVENUE_BANDS = ("pre-revenue", "under-1k", "1k-10k", "10k-50k", "50k-100k", "100k+")

# Fields counted by the completion percentage
COMPLETION_FIELDS = (
    "founder_name",
    "startup_name",
    "industry",
    "stage",
    "location",
    "description",
    "website",
    "founded_year",
    "team_size",
    "monthly_revenue",
)


class StartupProfile(Base):
    __tablename__ = "startup_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # Not a foreign key: profiles can outlive their user and are swept by the orphan cleanup
    user_id: Mapped[int] = mapped_column(Integer, unique=True, index=True)
    user_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    founder_name: Mapped[str] = mapped_column(String(100))
    startup_name: Mapped[str] = mapped_column(String(150))
    industry: Mapped[str] = mapped_column(String(20), index=True)
    stage: Mapped[str] = mapped_column(String(20), index=True)
    location: Mapped[str] = mapped_column(String(150))
    description: Mapped[str] = mapped_column(Text)
    website: Mapped[str] = mapped_column(String(500), default="")
    founded_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    team_size: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    monthly_revenue: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_incorporated: Mapped[str] = mapped_column(String(20), default="")
    competitive_advantage: Mapped[str] = mapped_column(Text, default="")
    customer_base: Mapped[str] = mapped_column(Text, default="")
    profile_completion: Mapped[int] = mapped_column(Integer, default=0)  # 0-100
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userEmail": self.user_email,
            "founderName": self.founder_name,
            "startupName": self.startup_name,
            "industry": self.industry,
            "stage": self.stage,
            "location": self.location,
            "description": self.description,
            "website": self.website,
            "foundedYear": self.founded_year,
            "teamSize": self.team_size,
            "monthlyRevenue": self.monthly_revenue,
            "isIncorporated": self.is_incorporated,
            "competitiveAdvantage": self.competitive_advantage,
            "customerBase": self.customer_base,
            "profileCompletion": self.profile_completion,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
