"""
Analysis Router — LLM-backed root cause, translation, simulation and risk.

Model failures are not HTTP errors: the endpoints answer 200 with an
empty result or an explanatory message. A second request for an action
that is still running is refused with 409.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.deps import get_clock, get_guard, get_knowledge_store, get_llm_client
from api.v1.routers.monitoring import POLineIn, POLogIn
from assistant.client import LLMClient
from assistant.guard import ActionInProgress, InFlightGuard
from assistant.risk import run_risk_assessment, simulation_lines, sort_risk_results
from assistant.schemas import (
    CategorizedAnalysis,
    EnrichedRiskAssessment,
    JustificationCategory,
    Language,
)
from assistant.service import (
    ALL_VENDORS,
    categorize_justifications,
    get_root_cause_analysis,
    get_what_if_simulation,
    translate_analysis,
)
from knowledge.store import KnowledgeStore

router = APIRouter(prefix="/api/v1/analysis", tags=["analysis"])

ANALYSIS_ERROR_SUMMARY = "An error occurred while generating the analysis. Please try again."


# ─── Schemas ────────────────────────────────────────────────────────────────


class RootCauseRequest(BaseModel):
    query: str = Field(min_length=1)
    vendor: str = ALL_VENDORS
    po_lines: list[POLineIn]
    po_logs: list[POLogIn] = []
    use_knowledge_base: bool = True
    language: Language = "en"


class RootCauseResponse(BaseModel):
    ok: bool
    analysis: CategorizedAnalysis
    translation: CategorizedAnalysis | None = None


class TranslateRequest(BaseModel):
    analysis: CategorizedAnalysis
    target_language: Language


class TranslateResponse(BaseModel):
    ok: bool
    analysis: CategorizedAnalysis | None


class SimulationRequest(BaseModel):
    scenario: str = Field(min_length=1)
    po_lines: list[POLineIn]
    vendors: list[str] = []
    language: Language = "en"


class SimulationResponse(BaseModel):
    result: str


class RiskRequest(BaseModel):
    po_lines: list[POLineIn]
    vendors: list[str]
    language: Language = "en"
    sort_key: str = Field("risk_level", pattern="^(vendor|po_line_id|risk_level)$")
    sort_direction: str = Field("desc", pattern="^(asc|desc)$")


class VendorRiskCount(BaseModel):
    vendor: str
    high_risk_lines: int


class RiskReportResponse(BaseModel):
    results: list[EnrichedRiskAssessment]
    vendor_summary: list[VendorRiskCount]
    justification_summary: list[JustificationCategory]


class CategorizeRequest(BaseModel):
    justifications: list[str]
    language: Language = "en"


# ─── Helpers ────────────────────────────────────────────────────────────────


@contextmanager
def _exclusive(guard: InFlightGuard, action: str) -> Iterator[None]:
    try:
        with guard.hold(action):
            yield
    except ActionInProgress as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("/root-cause", response_model=RootCauseResponse)
async def root_cause(
    body: RootCauseRequest,
    client: LLMClient = Depends(get_llm_client),
    store: KnowledgeStore = Depends(get_knowledge_store),
    guard: InFlightGuard = Depends(get_guard),
    now: datetime = Depends(get_clock),
):
    """Categorized root-cause analysis, optionally translated."""
    knowledge_context = store.content() if body.use_knowledge_base else ""
    with _exclusive(guard, "root_cause"):
        analysis = await get_root_cause_analysis(
            client,
            body.query,
            [line.to_domain() for line in body.po_lines],
            [log.to_domain() for log in body.po_logs],
            body.vendor,
            now,
            knowledge_context=knowledge_context,
        )
        if analysis is None:
            return RootCauseResponse(ok=False, analysis=CategorizedAnalysis(summary=ANALYSIS_ERROR_SUMMARY))

        translation = None
        if body.language != "en":
            translation = await translate_analysis(client, analysis, body.language)
    return RootCauseResponse(ok=True, analysis=analysis, translation=translation)


@router.post("/translate", response_model=TranslateResponse)
async def translate(
    body: TranslateRequest,
    client: LLMClient = Depends(get_llm_client),
    guard: InFlightGuard = Depends(get_guard),
):
    with _exclusive(guard, "translate"):
        translated = await translate_analysis(client, body.analysis, body.target_language)
    return TranslateResponse(ok=translated is not None, analysis=translated)


@router.post("/simulate", response_model=SimulationResponse)
async def simulate(
    body: SimulationRequest,
    client: LLMClient = Depends(get_llm_client),
    guard: InFlightGuard = Depends(get_guard),
    now: datetime = Depends(get_clock),
):
    """What-if simulation over the selected vendors' lines (all lines if none selected)."""
    lines = simulation_lines([line.to_domain() for line in body.po_lines], body.vendors)
    with _exclusive(guard, "simulation"):
        result = await get_what_if_simulation(client, body.scenario, lines, body.language, now)
    return SimulationResponse(result=result)


@router.post("/risk", response_model=RiskReportResponse)
async def risk(
    body: RiskRequest,
    client: LLMClient = Depends(get_llm_client),
    guard: InFlightGuard = Depends(get_guard),
    now: datetime = Depends(get_clock),
):
    with _exclusive(guard, "risk"):
        report = await run_risk_assessment(
            client,
            [line.to_domain() for line in body.po_lines],
            body.vendors,
            body.language,
            now,
        )
    return RiskReportResponse(
        results=sort_risk_results(report.results, body.sort_key, body.sort_direction),
        vendor_summary=[VendorRiskCount(vendor=v, high_risk_lines=n) for v, n in report.vendor_summary],
        justification_summary=report.justification_summary,
    )


@router.post("/risk/categorize", response_model=list[JustificationCategory])
async def categorize(
    body: CategorizeRequest,
    client: LLMClient = Depends(get_llm_client),
    guard: InFlightGuard = Depends(get_guard),
):
    if not body.justifications:
        return []
    with _exclusive(guard, "categorize"):
        return await categorize_justifications(client, body.justifications, body.language)
