"""
Shared fixtures for unit and integration tests.
"""

import os
import sys
import pytest
from unittest.mock import MagicMock

# ── Ensure backend modules are importable ──
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(ROOT, "backend", "analyzer"))

# ── Fake .env values used by every test ──
ENV_DEFAULTS = {
    "NARRATIVE_MODEL": "claude-sonnet-4-20250514",
    "NARRATIVE_TIMEOUT": "60",
    "NARRATIVE_MAX_TOKENS": "3000",
    "NARRATIVE_TEMPERATURE": "0.0",
    "ANTHROPIC_API_URL": "https://api.anthropic.com/v1/messages",
    "ANTHROPIC_VERSION": "2023-06-01",
    "ALLOWED_MODELS": "claude-sonnet-4-20250514",
    "UPSTREAM_TIMEOUT": "60",
    "CORS_ORIGINS": "*",
    "AUTOSAVE_DELAY": "1.0",
    "LOG_LEVEL": "INFO",
}

FILLED_TEXT_INPUTS = {
    "firewallDetails": "Router firewall plus Windows Defender Firewall",
    "outdatedSoftware": "none",
    "malwareDetails": "Microsoft Defender on all laptops",
    "deviceCount": "12 laptops, 3 phones",
    "cloudServices": "Microsoft 365, Xero",
    "backupDetails": "Nightly cloud backup with quarterly restore test",
    "incidentDetails": "One-page plan with contact list",
}


@pytest.fixture(autouse=True)
def mock_env(monkeypatch, tmp_path):
    """Inject all required env vars; no narrative proxy unless a test sets one."""
    for k, v in ENV_DEFAULTS.items():
        monkeypatch.setenv(k, v)
    monkeypatch.delenv("NARRATIVE_PROXY_URL", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setenv("SNAPSHOT_DIR", str(tmp_path / "snapshots"))


def build_checklist(overrides=None, text_inputs=None):
    """Every catalogued checklist question answered "pass", with per-question overrides."""
    from catalog import CHECKLIST_QUESTIONS, checklist_answer
    from models import ChecklistResponses

    overrides = overrides or {}
    controls = {}
    for q in CHECKLIST_QUESTIONS:
        value = overrides.get(q.id, "pass")
        if value is None:
            continue
        controls.setdefault(q.control, {})[q.id] = checklist_answer(q.id, value)
    inputs = dict(FILLED_TEXT_INPUTS)
    inputs.update(text_inputs or {})
    return ChecklistResponses(controls=controls, text_inputs=inputs)


def checklist_payload(overrides=None, text_inputs=None):
    """Raw request body for a checklist: answers carry value and label only, no critical flag."""
    from catalog import CHECKLIST_QUESTIONS

    overrides = overrides or {}
    controls = {}
    for q in CHECKLIST_QUESTIONS:
        value = overrides.get(q.id, "pass")
        if value is None:
            continue
        controls.setdefault(q.control, {})[q.id] = {"value": value, "text": q.text}
    inputs = dict(FILLED_TEXT_INPUTS)
    inputs.update(text_inputs or {})
    return {"controls": controls, "textInputs": inputs}


def build_framework(section_values):
    """section_values: {"A1": ["achieved", "partial"], ...} -> FrameworkResponses."""
    from models import FrameworkResponses

    sections = {
        sid: {f"{sid.lower()}_{i + 1}": v for i, v in enumerate(values)}
        for sid, values in section_values.items()
    }
    return FrameworkResponses(sections=sections)


@pytest.fixture
def all_pass_checklist():
    return build_checklist()


@pytest.fixture
def mock_narrative_client():
    """Return a MagicMock that behaves like NarrativeClient."""
    client = MagicMock()
    client.base_url = "http://127.0.0.1:8787"
    client.model = "claude-sonnet-4-20250514"
    client.timeout = 60
    return client


@pytest.fixture
def sample_checklist_json():
    """A realistic narrative reply: reasoning wrapper, code fence, then the JSON object."""
    return (
        "<think>\nThe MFA answer is unsure, which counts as a failure.\n</think>\n"
        "```json\n"
        "{\n"
        '  "overallStatus": "FAIL",\n'
        '  "readinessScore": 84,\n'
        '  "criticalIssuesCount": 1,\n'
        '  "controlScores": {"firewalls": 100, "secureConfig": 100, "updates": 100, '
        '"accessControl": 80, "malware": 100},\n'
        '  "criticalIssues": [{"control": "accessControl", "issue": "MFA not confirmed", '
        '"impact": "Stolen passwords give full access", "action": "Enable MFA on all cloud services"}],\n'
        '  "warnings": [],\n'
        '  "strengths": ["Firewalls enabled everywhere"],\n'
        '  "nextSteps": ["Enable MFA"],\n'
        '  "summary": "One critical gap in access control {MFA} blocks certification.",\n'
        '  "timeline": "2-4 weeks with focused effort"\n'
        "}\n"
        "```\n"
        "Let me know if you need anything else {or more detail}."
    )


@pytest.fixture
def sample_framework_json():
    return (
        '{"overallRating": "Partially Achieved", '
        '"summary": "Governance is solid but detection is weak.", '
        '"criticalGaps": ["C1 monitoring coverage"], '
        '"strengths": ["A1 governance"], '
        '"priorityActions": [{"action": "Deploy log collection", "principle": "C1", '
        '"effort": "Medium", "impact": "High"}], '
        '"objectiveRatings": {"A": "Achieved", "B": "Partially Achieved", '
        '"C": "Not Achieved", "D": "Partially Achieved"}, '
        '"regulatoryNote": "NIS obligations apply to essential services."}'
    )
