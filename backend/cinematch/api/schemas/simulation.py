import re
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, computed_field, field_validator
from pydantic.alias_generators import to_camel


class ViewName(str, Enum):
    INPUT = "input"
    PROCESSING = "processing"
    RESULTS = "results"


class ShotStatus(str, Enum):
    PENDING = "pending"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class VideoStatus(str, Enum):
    IDLE = "idle"          # not started yet, or gave up (failure is only logged)
    LOADING = "loading"
    READY = "ready"


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShotDraft(CamelModel):
    """One storyboard entry as returned by the analysis model."""

    scene_header: str
    action: str
    camera_angle: str
    visual_description: str


class Shot(ShotDraft):
    image_url: Optional[str] = None
    status: ShotStatus = ShotStatus.PENDING

    @computed_field(alias="isLoadingImage")
    @property
    def is_loading_image(self) -> bool:
        return self.status is ShotStatus.LOADING


class CastingDraft(CamelModel):
    name: str = ""
    match: float = 0

    @field_validator("name", mode="before")
    @classmethod
    def _name_as_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("match", mode="before")
    @classmethod
    def _match_as_number(cls, v):
        # the model sometimes answers "92%" or "92 %"
        if isinstance(v, str):
            m = re.search(r"-?\d+(?:[.,]\d+)?", v)
            return float(m.group(0).replace(",", ".")) if m else 0
        return 0 if v is None else v


class CastingSuggestion(CastingDraft):
    image: str


class AnalysisPayload(CamelModel):
    score: str = ""
    genre: str = ""
    audience: str = ""
    strengths: List[str] = []
    weaknesses: List[str] = []
    casting: List[CastingDraft] = []

    @field_validator("score", "genre", "audience", mode="before")
    @classmethod
    def _as_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def _as_text_list(cls, v):
        if v is None:
            return []
        if isinstance(v, (str, int, float)):
            v = [v]
        return [str(x) for x in v]


class AnalysisResult(AnalysisPayload):
    casting: List[CastingSuggestion] = []


class VideoState(CamelModel):
    status: VideoStatus = VideoStatus.IDLE
    url: Optional[str] = None
    mime_type: Optional[str] = None


class SimulationView(CamelModel):
    id: str
    view: ViewName
    processing_step: int
    script: str
    analysis: Optional[AnalysisResult] = None
    shots: List[Shot] = []
    video: VideoState
    created_at: datetime


class ScriptRequest(BaseModel):
    script: str


class RunRequest(BaseModel):
    script: Optional[str] = None
