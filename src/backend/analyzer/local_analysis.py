"""
Rule-based analysis of the five-control checklist.

Used whenever the narrative service is unavailable, and deterministic for a
given set of responses: no clock, no randomness, only the static tables in
catalog.py.
"""

from catalog import (
    DEFAULT_REMEDIATION, END_OF_LIFE_KEYWORDS, NON_CRITICAL_RECOMMENDATION,
    OUTDATED_SOFTWARE_REMEDIATION, QUESTIONS_BY_ID, REMEDIATION, SCORED_CONTROLS,
    STRENGTH_QUESTIONS, SUPPLEMENTARY_QUESTIONS, is_critical,
)
from models import (
    AnalysisWarning, Answer, ChecklistResponses, ChecklistResult, CriticalIssue, VendorSummary,
)
from scoring import round_half_up

FAILING_VALUES = {"fail", "unsure"}

STARTED_STRENGTH = "You've started the assessment - that's the first step!"


def _question_text(question_id: str, answer: Answer) -> str:
    if answer.text:
        return answer.text
    q = QUESTIONS_BY_ID.get(question_id)
    return q.text if q else question_id


def _find_answer(responses: ChecklistResponses, question_id: str) -> Answer | None:
    for answers in responses.controls.values():
        if question_id in answers:
            return answers[question_id]
    return None


def mentions_end_of_life(outdated_software: str) -> bool:
    text = (outdated_software or "").strip().lower()
    if not text or text == "none":
        return False
    return any(keyword in text for keyword in END_OF_LIFE_KEYWORDS)


def _vendor_findings(summary: VendorSummary) -> tuple[list[AnalysisWarning], list[str]]:
    warnings, strengths = [], []
    if summary.high:
        warnings.append(AnalysisWarning(
            control="vendors",
            warning=f"{summary.high} third-party vendor{'s' if summary.high > 1 else ''} rated high risk",
            recommendation="Reduce the access held by high-risk vendors or obtain evidence of their "
                           "security controls (certification, MFA, breach notification terms)",
        ))
    elif summary.total and summary.low == summary.total:
        strengths.append("All assessed third-party vendors are rated low risk")
    return warnings, strengths


def generate_next_steps(critical_count: int, warning_count: int) -> list[str]:
    steps = []
    if critical_count > 0:
        steps.append("Address all critical issues immediately - these will prevent certification")
        steps.append("Focus on the 5 technical controls in priority order")
    if warning_count > 0:
        steps.append("Review and resolve warning items to strengthen security")
    steps.append("Document all security measures and policies")
    steps.append("Contact a Cyber Essentials Certification Body to schedule assessment")
    return steps


def generate_summary(status: str, critical_count: int) -> str:
    if status == "PASS":
        return (
            "Excellent work! Your organization appears ready for Cyber Essentials certification. "
            "You've implemented the core controls effectively and should contact a Certification "
            "Body to begin the formal assessment process."
        )
    if status == "NEEDS_WORK":
        return (
            "You're on the right track but have some areas to improve. While you've avoided critical "
            "failures, addressing the warning items will strengthen your security posture and improve "
            "your chances of passing certification."
        )
    plural = "s" if critical_count > 1 else ""
    return (
        f"Your organization has {critical_count} critical issue{plural} that must be resolved before "
        "certification. Focus on implementing the mandatory controls first, then address the remaining "
        "gaps. With focused effort, you can achieve certification readiness."
    )


def estimate_timeline(critical_count: int, warning_count: int) -> str:
    if critical_count == 0 and warning_count == 0:
        return "Ready now - contact a Certification Body"
    if critical_count == 0:
        return "1-2 weeks to address warnings"
    if critical_count <= 3:
        return "2-4 weeks with focused effort"
    if critical_count <= 7:
        return "1-2 months with dedicated resources"
    return "2-3 months - significant work needed"


def perform_local_analysis(
    responses: ChecklistResponses, vendor_summary: VendorSummary | None = None
) -> ChecklistResult:
    critical_failures: list[CriticalIssue] = []
    warnings: list[AnalysisWarning] = []
    strengths: list[str] = []
    scores = {control: 100.0 for control in SCORED_CONTROLS}

    for control, answers in responses.controls.items():
        fail_count = 0
        total_critical = 0
        for qid, answer in answers.items():
            if qid in SUPPLEMENTARY_QUESTIONS:
                continue
            text = _question_text(qid, answer)
            if is_critical(qid, answer):
                total_critical += 1
                if answer.value in FAILING_VALUES:
                    fail_count += 1
                    fix = REMEDIATION.get(qid, DEFAULT_REMEDIATION)
                    critical_failures.append(
                        CriticalIssue(control=control, issue=text, impact=fix.impact, action=fix.action)
                    )
                    continue
            elif answer.value == "fail":
                warnings.append(
                    AnalysisWarning(control=control, warning=text, recommendation=NON_CRITICAL_RECOMMENDATION)
                )
                continue
            if answer.value == "pass" and qid in STRENGTH_QUESTIONS:
                strengths.append(text)

        if control in scores and total_critical > 0:
            scores[control] = max(0.0, 100 - fail_count / total_critical * 100)

    outdated = responses.text_inputs.get("outdatedSoftware", "")
    if mentions_end_of_life(outdated):
        critical_failures.append(CriticalIssue(
            control="updates",
            issue=f"Outdated software identified: {outdated}",
            impact=OUTDATED_SOFTWARE_REMEDIATION.impact,
            action=OUTDATED_SOFTWARE_REMEDIATION.action,
        ))

    for qid, (warning, recommendation, strength) in SUPPLEMENTARY_QUESTIONS.items():
        answer = _find_answer(responses, qid)
        if answer is None:
            continue
        if answer.value == "fail":
            warnings.append(AnalysisWarning(control="scope", warning=warning, recommendation=recommendation))
        elif answer.value == "pass":
            strengths.append(strength)

    if vendor_summary is not None:
        vendor_warnings, vendor_strengths = _vendor_findings(vendor_summary)
        warnings.extend(vendor_warnings)
        strengths.extend(vendor_strengths)

    if critical_failures:
        status = "FAIL"
    elif warnings:
        status = "NEEDS_WORK"
    else:
        status = "PASS"

    readiness = round_half_up(sum(scores.values()) / len(scores))

    return ChecklistResult(
        overall_status=status,
        readiness_score=readiness,
        critical_issues_count=len(critical_failures),
        control_scores=scores,
        critical_issues=critical_failures,
        warnings=warnings,
        strengths=strengths or [STARTED_STRENGTH],
        next_steps=generate_next_steps(len(critical_failures), len(warnings)),
        summary=generate_summary(status, len(critical_failures)),
        timeline=estimate_timeline(len(critical_failures), len(warnings)),
        source="local",
    )
