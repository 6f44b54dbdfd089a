from catalog import (
    CONTROL_LABELS, SECTION_IDS, TEXT_INPUT_LABELS, TOTAL_FRAMEWORK_QUESTIONS, is_critical,
)
from models import ChecklistResponses, FrameworkResponses, ScoreMap, VendorSummary

# ── Checklist variant ──
CHECKLIST_SYSTEM = (
    "You are a UK Cyber Essentials (v3.3) certification expert and assessor. Your role is to evaluate "
    "small business self-assessment responses against the five technical controls:\n\n"
    "1. Firewalls\n"
    "2. Secure Configuration\n"
    "3. Security Update Management\n"
    "4. User Access Control\n"
    "5. Malware Protection\n\n"
    "RULES:\n"
    "- Only assess based on the answers provided. Do NOT assume or infer capabilities the user has not stated.\n"
    '- Treat "unsure" or "I don\'t know" answers as FAILURES - if a business cannot confirm a control is '
    "in place, it is not in place.\n"
    '- Treat "partial" answers as WARNINGS - partially implemented controls need remediation.\n'
    "- A single critical failure in ANY control means FAIL for that control and overall FAIL for certification.\n"
    "- Be specific and actionable in recommendations. Reference the exact Cyber Essentials requirement "
    "where possible.\n"
    '- Scoring: 100% = all questions in the control answered "pass". Deduct proportionally for failures. '
    '"unsure" on a critical question = 0 points for that question.\n\n'
    "IMPORTANT: Return ONLY valid JSON. No markdown fences, no commentary outside the JSON object."
)

CHECKLIST_USER = """Evaluate this Cyber Essentials self-assessment:

## Assessment Responses
{responses}
{additional}
Respond with this exact JSON structure:

{{
  "overallStatus": "PASS" | "FAIL" | "NEEDS_WORK",
  "readinessScore": <0-100>,
  "criticalIssuesCount": <number>,
  "controlScores": {{
    "firewalls": <0-100>,
    "secureConfig": <0-100>,
    "updates": <0-100>,
    "accessControl": <0-100>,
    "malware": <0-100>
  }},
  "criticalIssues": [
    {{"control": "<control key>", "issue": "<what is wrong>", "impact": "<business risk>", "action": "<remediation step>"}}
  ],
  "warnings": [
    {{"control": "<control key>", "warning": "<description>", "recommendation": "<actionable fix>"}}
  ],
  "strengths": ["<strength>"],
  "nextSteps": ["<prioritised step>"],
  "summary": "<2-3 sentence assessment>",
  "timeline": "<estimated time to readiness>"
}}"""

# ── Framework variant ──
FRAMEWORK_SYSTEM = (
    "You are a NCSC Cyber Assessment Framework (CAF) v4.0 assessor analysing a UK organisation's "
    "self-assessment results. Return ONLY valid JSON."
)

FRAMEWORK_USER = """Overall score: {overall}%
Section scores: {sections}
Sections scoring below 50%: {low_sections}
Total questions answered: {answered} of {total}
{vendors}
Provide a JSON response in this exact structure:
{{
  "overallRating": "one of: Achieved / Partially Achieved / Not Achieved",
  "summary": "2-3 sentence executive summary",
  "criticalGaps": ["up to 5 most critical gaps as short strings"],
  "strengths": ["up to 3 strengths"],
  "priorityActions": [
    {{"action": "short description", "principle": "e.g. B4", "effort": "Low/Medium/High", "impact": "Low/Medium/High"}}
  ],
  "objectiveRatings": {{
    "A": "Achieved/Partially Achieved/Not Achieved",
    "B": "Achieved/Partially Achieved/Not Achieved",
    "C": "Achieved/Partially Achieved/Not Achieved",
    "D": "Achieved/Partially Achieved/Not Achieved"
  }},
  "regulatoryNote": "1 sentence on NIS/GDPR/sector regulatory implications if applicable"
}}"""


def describe_vendors(summary: VendorSummary | None) -> str:
    if summary is None or summary.total == 0:
        return ""
    avg = f"{summary.average_score}%" if summary.average_score is not None else "not assessed"
    return (
        f"Third-party vendors: {summary.total} tracked ({summary.assessed} assessed): "
        f"{summary.high} high risk, {summary.medium} medium risk, {summary.low} low risk; "
        f"average vendor score {avg}"
    )


def build_checklist_prompt(
    responses: ChecklistResponses, vendor_summary: VendorSummary | None = None
) -> tuple[str, str]:
    """Return (system prompt, user prompt)."""
    lines = []
    for control, answers in responses.controls.items():
        lines.append(f"\n### {CONTROL_LABELS.get(control, control)}")
        for qid, answer in answers.items():
            critical = " [CRITICAL]" if is_critical(qid, answer) else ""
            lines.append(f"- {answer.text or qid} → {answer.value.upper()}{critical}")

    context = []
    for key, label in TEXT_INPUT_LABELS.items():
        value = (responses.text_inputs.get(key) or "").strip()
        if not value or (key == "outdatedSoftware" and value.lower() == "none"):
            continue
        context.append(f"{label}: {value}")
    vendors = describe_vendors(vendor_summary)
    if vendors:
        context.append(vendors)

    additional = "\n## Additional Context\n" + "\n".join(context) + "\n" if context else ""
    user = CHECKLIST_USER.format(responses="\n".join(lines), additional=additional)
    return CHECKLIST_SYSTEM, user


def build_framework_prompt(
    responses: FrameworkResponses,
    score_map: ScoreMap,
    overall: int,
    vendor_summary: VendorSummary | None = None,
) -> tuple[str, str]:
    sections = ", ".join(
        f"{sid}: {score_map[sid]}%" if score_map.get(sid) is not None else f"{sid}: not attempted"
        for sid in SECTION_IDS
    )
    low = [sid for sid in SECTION_IDS if score_map.get(sid) is not None and score_map[sid] < 50]
    vendors = describe_vendors(vendor_summary)
    user = FRAMEWORK_USER.format(
        overall=overall,
        sections=sections,
        low_sections=", ".join(low) or "none",
        answered=responses.answered_count(),
        total=TOTAL_FRAMEWORK_QUESTIONS,
        vendors=f"{vendors}\n" if vendors else "",
    )
    return FRAMEWORK_SYSTEM, user
