"""
Test Configuration — Fixtures for a fixed clock, PO snapshots, a fake LLM
client, and an API test client.

The API is stateless apart from the knowledge store, which each test gets
as a fresh JSON file under tmp_path.
"""

import json
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient

from api.deps import get_clock, get_guard, get_knowledge_store, get_llm_client
from api.main import app
from assistant.guard import InFlightGuard
from knowledge.store import KnowledgeStore
from monitoring.models import AckStatus, POLine, POLog, Thresholds

# Saturday midday; "today" starts 2024-06-15 00:00.
NOW = datetime(2024, 6, 15, 12, 0, 0)

FUTURE_ETA = "2024-07-01"
PAST_ETA = "2024-06-01"


def make_line(
    po_line_id: str,
    vendor: str = "Stellar",
    eta: str | None = FUTURE_ETA,
    vendor_number: int = 1001,
    **overrides,
) -> POLine:
    fields = {
        "po_line_id": po_line_id,
        "vendor": vendor,
        "vendor_number": vendor_number,
        "esd": "2024-05-20",
        "eta": eta,
        "open_qty": 10,
        "creation_date": "2024-06-01T08:00:00",
        "ack_status": AckStatus.PENDING,
    }
    fields.update(overrides)
    return POLine(**fields)


def make_log(
    log_id: str,
    po_line_id: str,
    change_date: str = "2024-06-13T09:00:00",
    old_value="2024-06-20",
    new_value="2024-06-27",
    changed_field: str = "eta",
) -> POLog:
    return POLog(
        log_id=log_id,
        po_line_id=po_line_id,
        change_date=change_date,
        changed_field=changed_field,
        old_value=old_value,
        new_value=new_value,
    )


def vendor_lines(vendor: str, total: int, past_due: int, vendor_number: int = 1001, **overrides) -> list[POLine]:
    """``total`` lines for one vendor, the first ``past_due`` of them past due."""
    return [
        make_line(
            f"{vendor}-{i}",
            vendor=vendor,
            vendor_number=vendor_number,
            eta=PAST_ETA if i < past_due else FUTURE_ETA,
            **overrides,
        )
        for i in range(total)
    ]


def line_payload(line: POLine) -> dict:
    """JSON body form of a PO line."""
    return {
        "po_line_id": line.po_line_id,
        "vendor": line.vendor,
        "vendor_number": line.vendor_number,
        "esd": line.esd,
        "eta": line.eta,
        "open_qty": line.open_qty,
        "creation_date": line.creation_date,
        "ack_status": line.ack_status.value,
        "ack_date": line.ack_date,
    }


def log_payload(log: POLog) -> dict:
    return {
        "log_id": log.log_id,
        "po_line_id": log.po_line_id,
        "change_date": log.change_date,
        "changed_field": log.changed_field,
        "old_value": log.old_value,
        "new_value": log.new_value,
    }


class FakeLLMClient:
    """Scripted LLM client. Responses are consumed in order; exceptions are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[dict] = []

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    async def generate(self, *, system_instruction: str, prompt: str, json_output: bool = False) -> str:
        self.calls.append(
            {"system_instruction": system_instruction, "prompt": prompt, "json_output": json_output}
        )
        if not self.responses:
            raise RuntimeError("no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response)
        return response


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def thresholds():
    """Explicit defaults so tests don't depend on environment overrides."""
    return Thresholds(percentage=20, count=5, min_po_lines=0, worsening_days=7, worsening_percentage=0)


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def knowledge_store(tmp_path):
    return KnowledgeStore(tmp_path / "knowledge_files.json")


@pytest.fixture
def guard():
    return InFlightGuard()


@pytest.fixture
async def client(fake_llm, knowledge_store, guard):
    """Create an async test client with dependency overrides."""
    app.dependency_overrides[get_clock] = lambda: NOW
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_knowledge_store] = lambda: knowledge_store
    app.dependency_overrides[get_guard] = lambda: guard

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
