from datetime import datetime, timezone

from catalog import FRAMEWORK_POINTS, OBJECTIVES, REGULATORY_NOTE, SECTION_IDS
from models import (
    ExportArtifact, FrameworkResponses, FrameworkResult, ObjectiveRollup, PriorityAction,
    ScoreMap, VendorSummary,
)
from scoring import band, mean, round_half_up

RATING_BANDS = [(70, "Achieved"), (40, "Partially Achieved")]

GAP_THRESHOLD = 50
STRENGTH_THRESHOLD = 75
MAX_GAPS = 5
MAX_STRENGTHS = 3
MAX_ACTIONS = 3


def rate(score: float) -> str:
    return band(score, RATING_BANDS, "Not Achieved")


def section_score(answers: dict[str, str]) -> int | None:
    """Mean points over scorable answers; None when the section has none (na is not scorable)."""
    points = [FRAMEWORK_POINTS[v] for v in answers.values() if FRAMEWORK_POINTS.get(v) is not None]
    avg = mean(points)
    return round_half_up(avg) if avg is not None else None


def build_scores(responses: FrameworkResponses) -> ScoreMap:
    return {sid: section_score(responses.sections.get(sid, {})) for sid in SECTION_IDS}


def overall_score(score_map: ScoreMap) -> int:
    avg = mean(s for s in score_map.values() if s is not None)
    return round_half_up(avg) if avg is not None else 0


def rollup_objectives(score_map: ScoreMap) -> dict[str, ObjectiveRollup]:
    rollup = {}
    for objective, section_ids in OBJECTIVES.items():
        avg = mean(score_map[sid] for sid in section_ids if score_map.get(sid) is not None)
        if avg is None:
            rollup[objective] = ObjectiveRollup(score=None, rating="Not Attempted")
        else:
            score = round_half_up(avg)
            rollup[objective] = ObjectiveRollup(score=score, rating=rate(score))
    return rollup


def low_sections(score_map: ScoreMap) -> list[str]:
    return [sid for sid in SECTION_IDS if score_map.get(sid) is not None and score_map[sid] < GAP_THRESHOLD]


def high_sections(score_map: ScoreMap) -> list[str]:
    return [sid for sid in SECTION_IDS if score_map.get(sid) is not None and score_map[sid] >= STRENGTH_THRESHOLD]


def build_fallback_result(score_map: ScoreMap, vendor_summary: VendorSummary | None = None) -> FrameworkResult:
    """Mechanical narrative for when the remote analysis is unavailable. Reproducible from score_map."""
    overall = overall_score(score_map)
    gaps = low_sections(score_map)
    highs = high_sections(score_map)

    summary = (
        f"Local analysis (API unavailable). Overall score: {overall}%. "
        f"{len(gaps)} section(s) below {GAP_THRESHOLD}%. This is an indicative score only."
    )
    if vendor_summary is not None and vendor_summary.high:
        summary += f" {vendor_summary.high} third-party vendor(s) are rated high risk."

    return FrameworkResult(
        overall_rating=rate(overall),
        overall_score=overall,
        summary=summary,
        critical_gaps=[f"{sid} requires attention (score: {score_map[sid]}%)" for sid in gaps[:MAX_GAPS]],
        strengths=[f"{sid} performing well ({score_map[sid]}%)" for sid in highs[:MAX_STRENGTHS]],
        priority_actions=[
            PriorityAction(action=f"Improve {sid} controls", principle=sid, effort="Medium", impact="High")
            for sid in gaps[:MAX_ACTIONS]
        ],
        objective_ratings={obj: r.rating for obj, r in rollup_objectives(score_map).items()},
        regulatory_note=REGULATORY_NOTE,
        source="local",
    )


def export_artifact(responses: FrameworkResponses) -> ExportArtifact:
    return ExportArtifact(
        exported_at=datetime.now(timezone.utc).isoformat(),
        scores=build_scores(responses),
        responses=responses,
    )
