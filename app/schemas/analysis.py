from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.parsing.models import SourceType

MatchDecision = Literal["YES", "NO"]
MatchStatus = Literal["SELECTED", "REJECTED"]

_STATUS_FOR_MATCH: dict[str, str] = {"YES": "SELECTED", "NO": "REJECTED"}


class AnalysisBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    technical_score: float
    experience_score: float
    soft_skills_score: float
    overall_score: float


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate_name: str
    candidate_email: str
    score: float
    match: MatchDecision
    status: MatchStatus
    summary: str
    recommendation: str
    key_skills_matched: list[str] = Field(default_factory=list)
    skills_missing: list[str] = Field(default_factory=list)
    analysis_breakdown: AnalysisBreakdown
    reasoning: str

    @model_validator(mode="after")
    def _check_match_status_pair(self) -> "AnalysisResult":
        if _STATUS_FOR_MATCH[self.match] != self.status:
            raise ValueError(f"match={self.match} is inconsistent with status={self.status}")
        return self


class AnalyzeRequest(BaseModel):
    jd_text: str = Field(default="", max_length=200000)
    resume_text: str = Field(default="", max_length=200000)
    email: str | None = Field(default=None, max_length=320)
    session_id: str | None = Field(default=None, min_length=8, max_length=200)


class ExtractTextResponse(BaseModel):
    filename: str
    source_type: SourceType
    text: str
    characters: int = Field(ge=0)


class ErrorResponse(BaseModel):
    code: str
    detail: str
