# analyzer.py
import logging
import re
from enum import Enum
from typing import Iterable

import orjson
from pydantic import ValidationError

from branching import CHECKLIST_BRANCHING, BranchingEvaluator
from framework_scorer import build_fallback_result, build_scores, overall_score
from local_analysis import perform_local_analysis
from models import (
    ChecklistResponses, ChecklistResult, FrameworkResponses, FrameworkResult, ScoreMap, Vendor,
)
from narrative_client import NarrativeClient
from prompts import build_checklist_prompt, build_framework_prompt
from vendor_risk import summarize_vendors

logger = logging.getLogger(__name__)

FRAMEWORK_MAX_TOKENS = 3000


class OrchestratorState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    DISPLAYING = "displaying"


# ---------- JSON parsing ----------
def _strip_wrappers(raw: str) -> str:
    """
    Remove <think>...</think> and stray code fences, then trim.
    """
    if not raw:
        return raw
    raw = re.sub(r"<think>.*?</think>", "", raw, flags=re.DOTALL)
    raw = re.sub(r"```(?:json)?", "", raw)
    return raw.strip()


def _first_json_object(text: str) -> str:
    """Return the first balanced {...} block, ignoring braces inside string literals."""
    start = text.find("{")
    if start < 0:
        raise ValueError("No JSON object found in narrative response.")
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    raise ValueError("Unbalanced JSON object in narrative response.")


def _parse_narrative_json(raw: str) -> dict:
    """
    1) Strip wrappers
    2) Extract the first balanced {...} block
    3) Parse with orjson
    """
    data = orjson.loads(_first_json_object(_strip_wrappers(raw or "")))
    if not isinstance(data, dict):
        raise ValueError("Narrative response is not a JSON object.")
    return data


# ---------- Orchestrator ----------
class AnalysisOrchestrator:
    """
    Runs one analysis: a single attempt at the narrative service, then the
    local scorer on any failure. Never raises to the caller.
    Callers serialise requests; one orchestrator is not safe for concurrent use.
    """

    def __init__(self, client: NarrativeClient | None = None, branching: BranchingEvaluator = CHECKLIST_BRANCHING):
        self.client = client
        self.branching = branching
        self.state = OrchestratorState.IDLE
        self.mode: str | None = None
        self.last_result = None

    def _request(self, system: str, prompt: str, max_tokens: int | None = None) -> dict:
        raw = self.client.complete(prompt=prompt, system=system, max_tokens=max_tokens)
        return _parse_narrative_json(raw)

    def _finish(self, result):
        self.state = OrchestratorState.DISPLAYING
        self.mode = result.source
        self.last_result = result
        logger.info("Analysis complete (%s analysis)", result.source)
        return result

    def analyze_checklist(self, responses: ChecklistResponses, vendors: Iterable[Vendor] = ()) -> ChecklistResult:
        self.state = OrchestratorState.REQUESTING
        responses, cleared = self.branching.prune_checklist(responses)
        if cleared:
            logger.info("Ignoring answers to hidden questions: %s", ", ".join(cleared))
        vendor_summary = summarize_vendors(vendors)

        if self.client is not None:
            try:
                system, prompt = build_checklist_prompt(responses, vendor_summary)
                data = self._request(system, prompt)
                remote = ChecklistResult.model_validate(data)
                return self._finish(remote.model_copy(update={"source": "remote"}))
            except (ValidationError, Exception) as e:
                logger.warning("Narrative analysis unavailable, using local analysis: %s", str(e)[:200])

        return self._finish(perform_local_analysis(responses, vendor_summary))

    def analyze_framework(
        self, responses: FrameworkResponses, vendors: Iterable[Vendor] = ()
    ) -> tuple[ScoreMap, FrameworkResult]:
        self.state = OrchestratorState.REQUESTING
        score_map = build_scores(responses)
        overall = overall_score(score_map)
        vendor_summary = summarize_vendors(vendors)

        if self.client is not None:
            try:
                system, prompt = build_framework_prompt(responses, score_map, overall, vendor_summary)
                data = self._request(system, prompt, max_tokens=FRAMEWORK_MAX_TOKENS)
                remote = FrameworkResult.model_validate(data)
                result = remote.model_copy(update={"overall_score": overall, "source": "remote"})
                return score_map, self._finish(result)
            except (ValidationError, Exception) as e:
                logger.warning("Narrative analysis unavailable, using local analysis: %s", str(e)[:200])

        return score_map, self._finish(build_fallback_result(score_map, vendor_summary))
