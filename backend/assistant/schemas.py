"""Result contracts for the LLM-backed features."""

from typing import Literal

from pydantic import BaseModel, Field

Language = Literal["en", "zh"]
RiskLevel = Literal["High", "Medium", "Low"]
AnalysisCategoryName = Literal["Vendor Issues", "Internal (EMT) Issues"]

LANGUAGE_NAMES = {"en": "English", "zh": "Chinese"}


class AnalysisCategory(BaseModel):
    category: AnalysisCategoryName
    points: list[str]  # Markdown-formatted findings


class CategorizedAnalysis(BaseModel):
    summary: str
    analysis: list[AnalysisCategory] = Field(default_factory=list)


class RiskAssessment(BaseModel):
    po_line_id: str
    risk_level: RiskLevel
    justification: str


class EnrichedRiskAssessment(RiskAssessment):
    vendor: str


class JustificationCategory(BaseModel):
    category: str
    count: int
