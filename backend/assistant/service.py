"""
LLM-backed analysis features.

  - Root-cause analysis (categorized, optional knowledge-base context)
  - Translation of an analysis result (en ↔ zh)
  - What-if simulation (free-form markdown)
  - Delay risk prediction per PO line
  - Categorization of risk justifications

Every call is a boundary: transport errors, malformed JSON and schema
mismatches are logged and turned into an empty/explanatory result. No
retries.
"""

import json
from collections.abc import Sequence
from dataclasses import asdict
from datetime import datetime
from typing import Any

import structlog
from pydantic import TypeAdapter

from assistant.client import LLMClient, parse_json_response
from assistant.schemas import (
    LANGUAGE_NAMES,
    CategorizedAnalysis,
    JustificationCategory,
    Language,
    RiskAssessment,
)
from monitoring.models import POLine, POLog

logger = structlog.get_logger()

ALL_VENDORS = "All Vendors"

SIMULATION_ERROR_MESSAGE = (
    "An error occurred while communicating with the AI service. "
    "Please try again later."
)

_risk_list = TypeAdapter(list[RiskAssessment])
_category_list = TypeAdapter(list[JustificationCategory])


def _to_json(records: Sequence[Any]) -> str:
    return json.dumps([asdict(r) for r in records], indent=2, default=str)


def _unwrap_list(payload: Any, key: str) -> Any:
    """JSON-object responses wrap arrays under a key; accept either shape."""
    if isinstance(payload, dict):
        return payload.get(key, [])
    return payload


def scope_to_vendor(
    po_lines: Sequence[POLine],
    po_logs: Sequence[POLog],
    vendor: str,
) -> tuple[list[POLine], list[POLog]]:
    """Restrict lines to one vendor and logs to that vendor's lines."""
    if vendor == ALL_VENDORS:
        return list(po_lines), list(po_logs)
    lines = [line for line in po_lines if line.vendor == vendor]
    line_ids = {line.po_line_id for line in lines}
    return lines, [log for log in po_logs if log.po_line_id in line_ids]


# ── Root cause ───────────────────────────────────────────────────────────


def _root_cause_instruction(today: str) -> str:
    return f"""You are a supply chain analyst. Find the root cause of vendor delivery issues from Purchase Order (PO) lines and their change logs.

Rules:
1. Respond with a single JSON object: {{"summary": string, "analysis": [{{"category": "Vendor Issues" | "Internal (EMT) Issues", "points": [string]}}]}}. No text outside the JSON.
2. 'Vendor Issues' are supplier-side problems (shipping delays, production issues, repeated ETA push-outs). 'Internal (EMT) Issues' are our own process problems (data entry errors, frequent quantity changes, unrealistic initial ETAs).
3. 'summary' is a short high-level paragraph.
4. Each point is markdown: state the issue, then cite one or two illustrative PO lines. Do not list every affected line.
5. Today's date is {today}.
6. Write in English."""


async def get_root_cause_analysis(
    client: LLMClient,
    query: str,
    po_lines: Sequence[POLine],
    po_logs: Sequence[POLog],
    vendor: str,
    now: datetime,
    knowledge_context: str = "",
) -> CategorizedAnalysis | None:
    lines, logs = scope_to_vendor(po_lines, po_logs, vendor)
    prompt = f"""User Query: "{query}"

Vendor in Focus: {vendor}

Open PO Lines:
{_to_json(lines)}

PO Change Logs:
{_to_json(logs)}
"""
    if knowledge_context:
        prompt += f"\nReference Knowledge:\n{knowledge_context}\n"

    try:
        raw = await client.generate(
            system_instruction=_root_cause_instruction(now.date().isoformat()),
            prompt=prompt,
            json_output=True,
        )
        return CategorizedAnalysis.model_validate(parse_json_response(raw))
    except Exception as exc:
        logger.error("assistant.root_cause_failed", vendor=vendor, error=str(exc), exc_info=True)
        return None


async def translate_analysis(
    client: LLMClient,
    analysis: CategorizedAnalysis,
    target_language: Language,
) -> CategorizedAnalysis | None:
    language_name = LANGUAGE_NAMES[target_language]
    instruction = (
        f"You are an expert translator. Translate every user-facing string in the JSON object "
        f"('summary' and every string in 'points') to {language_name}. Keep markdown formatting, "
        f"the category values, and the exact JSON structure. Respond with the JSON object only."
    )
    try:
        raw = await client.generate(
            system_instruction=instruction,
            prompt=analysis.model_dump_json(indent=2),
            json_output=True,
        )
        return CategorizedAnalysis.model_validate(parse_json_response(raw))
    except Exception as exc:
        logger.error("assistant.translation_failed", language=target_language, error=str(exc), exc_info=True)
        return None


# ── Simulation ───────────────────────────────────────────────────────────


async def get_what_if_simulation(
    client: LLMClient,
    scenario: str,
    po_lines: Sequence[POLine],
    language: Language,
    now: datetime,
) -> str:
    instruction = f"""You are a supply chain simulation assistant. Simulate the outcome of the user's "what-if" scenario against the PO data.
- Today's date is {now.date().isoformat()}.
- Quantify the impact of the proposed change.
- Name the affected POs and vendors.
- Use markdown (lists, bold, tables).
- Respond in {LANGUAGE_NAMES[language]}."""
    prompt = f"""What-If Scenario: "{scenario}"

Open PO Lines:
{_to_json(po_lines)}
"""
    try:
        return await client.generate(system_instruction=instruction, prompt=prompt)
    except Exception as exc:
        logger.error("assistant.simulation_failed", error=str(exc), exc_info=True)
        return SIMULATION_ERROR_MESSAGE


# ── Risk ─────────────────────────────────────────────────────────────────


async def get_risk_prediction(
    client: LLMClient,
    po_lines: Sequence[POLine],
    language: Language,
    now: datetime,
) -> list[RiskAssessment]:
    instruction = (
        "You are a supply chain risk assessment assistant. Predict which open PO lines are at risk "
        f"of future delays. Today's date is {now.date().isoformat()}. Respond only with a JSON object "
        '{"results": [{"po_line_id": string, "risk_level": "High" | "Medium" | "Low", '
        '"justification": string}]}. '
        f"Write justifications in {LANGUAGE_NAMES[language]}."
    )
    prompt = f"""Identify open PO lines with a high or medium risk of delay. Consider current past-due status, large open quantities, and patterns across vendors.

Open PO Lines:
{_to_json(po_lines)}
"""
    try:
        raw = await client.generate(system_instruction=instruction, prompt=prompt, json_output=True)
        return _risk_list.validate_python(_unwrap_list(parse_json_response(raw), "results"))
    except Exception as exc:
        logger.error("assistant.risk_prediction_failed", lines=len(po_lines), error=str(exc), exc_info=True)
        return []


async def categorize_justifications(
    client: LLMClient,
    justifications: Sequence[str],
    language: Language,
) -> list[JustificationCategory]:
    instruction = (
        "You categorize risk reasons. Respond only with a JSON object "
        '{"categories": [{"category": string, "count": integer}]}. '
        f"Write category names in {LANGUAGE_NAMES[language]}."
    )
    prompt = (
        "Group these risk justifications into 3-5 high-level categories "
        '(e.g. "Severe Past Due", "Logistics Delays", "High Open Quantity") and count how many '
        f"justifications fall in each.\n\nJustifications:\n{json.dumps(list(justifications))}"
    )
    try:
        raw = await client.generate(system_instruction=instruction, prompt=prompt, json_output=True)
        return _category_list.validate_python(_unwrap_list(parse_json_response(raw), "categories"))
    except Exception as exc:
        logger.error("assistant.categorization_failed", error=str(exc), exc_info=True)
        return []
