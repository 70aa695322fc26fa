"""Pydantic schemas shared across the API."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class Relationship(str, Enum):
    DAD = "Dad"
    MOM = "Mom"
    BABYSITTER = "Babysitter"
    BROTHER = "Brother"
    SISTER = "Sister"
    GRANDPARENT = "Grandparent"
    OTHER = "Other"


class Language(str, Enum):
    ENGLISH = "English"
    HINDI = "Hindi"
    ASSAMESE = "Assamese"
    BENGALI = "Bengali"
    KANNADA = "Kannada"
    TAMIL = "Tamil"
    MARATHI = "Marathi"


class ActivityCategory(str, Enum):
    PLAY = "play"
    LEARNING = "learning"
    EXERCISE = "exercise"
    MEAL = "meal"
    SLEEP = "sleep"
    MEDICAL = "medical"
    SOCIAL = "social"
    CREATIVE = "creative"
    OUTDOOR = "outdoor"
    OTHER = "other"


class User(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserProfile(BaseModel):
    id: str
    user_id: str
    phone: Optional[str] = None
    language: Language = Language.ENGLISH
    avatar: Optional[str] = None
    onboarding_completed: bool = False
    created_at: datetime
    updated_at: datetime


class Child(BaseModel):
    """A child joined with the caller's relation to it."""

    id: str
    name: str
    date_of_birth: Optional[datetime] = None
    gender: Gender
    head_circumference: Optional[float] = Field(default=None, description="cm")
    height: Optional[float] = Field(default=None, description="cm")
    weight: Optional[float] = Field(default=None, description="kg")
    profile_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    relation_id: str
    relationship: Relationship
    is_primary: bool = False
    relation_created_at: datetime


class Activity(BaseModel):
    id: str
    child_id: str
    child_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, description="Minutes")
    category: Optional[ActivityCategory] = None
    recorded_at: datetime
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Milestone(BaseModel):
    id: str
    child_id: str
    child_name: Optional[str] = None
    child_profile_image: Optional[str] = None
    title: str
    description: Optional[str] = None
    achieved_at: datetime
    photos: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class MilestoneContent(BaseModel):
    category: str
    description: str
    image: Optional[str] = None


class StageContent(BaseModel):
    stage: str
    milestones: List[MilestoneContent]


class DevelopmentResponse(BaseModel):
    child_id: str
    child_name: str
    age_label: Optional[str] = None
    current_stage: Optional[str] = None
    stages: List[StageContent] = Field(default_factory=list)
    has_content: bool = False
