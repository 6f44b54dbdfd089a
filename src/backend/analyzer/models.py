from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


ChecklistValue = Literal["pass", "partial", "fail", "unsure"]
FrameworkValue = Literal["achieved", "partial", "not-achieved", "na"]
AccessLevel = Literal["system", "network", "data", "physical", "cloud", "limited"]
RiskLevel = Literal["low", "medium", "high"]
Verdict = Literal["PASS", "FAIL", "NEEDS_WORK"]
Rating = Literal["Achieved", "Partially Achieved", "Not Achieved"]
ObjectiveRating = Literal["Achieved", "Partially Achieved", "Not Achieved", "Not Attempted"]
ResultSource = Literal["local", "remote"]


def text_input_key(key: str) -> str:
    """Free-text fields are keyed in camelCase (outdatedSoftware); snake_case keys are accepted."""
    return to_camel(key) if "_" in key else key


# section/control id -> 0..100, or None when nothing scorable was answered
ScoreMap = dict[str, int | None]


class CamelModel(BaseModel):
    """Accepts both snake_case and camelCase keys, dumps camelCase with by_alias."""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class FrozenCamelModel(CamelModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, frozen=True)


# ---------- Responses ----------
class Answer(FrozenCamelModel):
    value: ChecklistValue
    text: str = ""
    # only consulted for ids outside the catalogue
    critical: bool = False


class ChecklistResponses(FrozenCamelModel):
    controls: dict[str, dict[str, Answer]] = {}
    text_inputs: dict[str, str] = {}

    @field_validator("text_inputs")
    @classmethod
    def _camel_keys(cls, v: dict[str, str]) -> dict[str, str]:
        return {text_input_key(k): value for k, value in v.items()}

    def flat_values(self) -> dict[str, str]:
        return {qid: a.value for answers in self.controls.values() for qid, a in answers.items()}

    def answered_count(self) -> int:
        return sum(len(answers) for answers in self.controls.values())


class FrameworkResponses(FrozenCamelModel):
    sections: dict[str, dict[str, FrameworkValue]] = {}

    def flat_values(self) -> dict[str, str]:
        return {qid: v for answers in self.sections.values() for qid, v in answers.items()}

    def answered_count(self) -> int:
        return sum(len(answers) for answers in self.sections.values())


# ---------- Vendors ----------
class Vendor(CamelModel):
    id: int
    name: str
    access_level: AccessLevel = "limited"
    answers: dict[str, ChecklistValue] = {}


class VendorRisk(FrozenCamelModel):
    score: float = Field(ge=0, le=100)
    level: RiskLevel
    raw_score: float | None = None
    assessed: bool = True


class VendorSummary(FrozenCamelModel):
    total: int = 0
    assessed: int = 0
    low: int = 0
    medium: int = 0
    high: int = 0
    average_score: float | None = None


# ---------- Results ----------
class CriticalIssue(FrozenCamelModel):
    control: str
    issue: str = ""
    impact: str = ""
    action: str = ""


class AnalysisWarning(FrozenCamelModel):
    control: str
    warning: str = ""
    recommendation: str = ""


class ChecklistResult(FrozenCamelModel):
    overall_status: Verdict
    readiness_score: float = Field(ge=0, le=100)
    critical_issues_count: int = 0
    control_scores: dict[str, float] = {}
    critical_issues: list[CriticalIssue] = []
    warnings: list[AnalysisWarning] = []
    strengths: list[str] = []
    next_steps: list[str] = []
    summary: str = ""
    timeline: str = ""
    source: ResultSource = "local"


class PriorityAction(FrozenCamelModel):
    action: str
    principle: str = ""
    effort: str = "Medium"
    impact: str = "High"


class ObjectiveRollup(FrozenCamelModel):
    score: int | None = None
    rating: ObjectiveRating = "Not Attempted"


class FrameworkResult(FrozenCamelModel):
    overall_rating: Rating
    overall_score: float = Field(0, ge=0, le=100)
    summary: str = ""
    critical_gaps: list[str] = []
    strengths: list[str] = []
    priority_actions: list[PriorityAction] = []
    objective_ratings: dict[str, ObjectiveRating] = {}
    regulatory_note: str = ""
    source: ResultSource = "local"


# ---------- Persistence / export ----------
class SessionSnapshot(CamelModel):
    responses: ChecklistResponses
    timestamp: str
    version: str
    vendors: list[Vendor] = []
    next_vendor_id: int | None = None


class ExportArtifact(CamelModel):
    exported_at: str
    scores: ScoreMap
    responses: FrameworkResponses


# ---------- API ----------
class ProxyRequest(CamelModel):
    prompt: str = Field(min_length=1, max_length=50000)
    system_prompt: str | None = Field(None, max_length=10000)
    model: str | None = None
    max_tokens: int | None = Field(None, ge=100, le=4000, alias="max_tokens")
    temperature: float | None = Field(None, ge=0, le=1)


class ChecklistAnalyzeRequest(CamelModel):
    responses: ChecklistResponses
    vendors: list[Vendor] = []


class FrameworkAnalyzeRequest(CamelModel):
    responses: FrameworkResponses
    vendors: list[Vendor] = []


class FrameworkAnalyzeResponse(CamelModel):
    scores: ScoreMap
    objectives: dict[str, ObjectiveRollup]
    result: FrameworkResult


class AnswerUpdate(CamelModel):
    control: str
    question_id: str
    value: ChecklistValue | None = None


class TextUpdate(CamelModel):
    field: str
    value: str = ""


class VendorCreate(CamelModel):
    name: str = Field(min_length=1)
    access_level: AccessLevel = "limited"


class VendorAnswerUpdate(CamelModel):
    question_id: str
    value: ChecklistValue | None = None


class ProgressResponse(CamelModel):
    session_id: str
    answered: int
    total: int
    percent: int
    low_completion: bool
    cleared: list[str] = []


class HealthResponse(BaseModel):
    status: str
    narrative_proxy: str | None = None
