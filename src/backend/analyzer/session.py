import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from branching import CHECKLIST_BRANCHING, BranchingEvaluator
from catalog import CHECKLIST_QUESTIONS, QUESTIONS_BY_ID, checklist_answer
from models import Answer, ChecklistResponses, ChecklistResult, SessionSnapshot, Vendor, text_input_key
from scoring import round_half_up
from storage import SNAPSHOT_KEY, SNAPSHOT_VERSION, DebouncedSaver, SnapshotStore
from validation import validate_checklist
from vendor_risk import VendorRegistry

logger = logging.getLogger(__name__)

_sessions: dict[str, "AssessmentSession"] = {}

LOW_COMPLETION_PERCENT = 50


@dataclass(frozen=True)
class Progress:
    answered: int
    total: int

    @property
    def percent(self) -> int:
        return round_half_up(self.answered / self.total * 100) if self.total else 0

    @property
    def low_completion(self) -> bool:
        return self.percent < LOW_COMPLETION_PERCENT


class AssessmentSession:
    """
    In-memory state for one checklist assessment: answers, free-text fields and
    vendors. Every edit re-applies question visibility and schedules an autosave.
    Autosave runs on a timer thread, so edits and snapshots hold the session lock.
    """

    def __init__(
        self,
        session_id: str,
        store: SnapshotStore | None = None,
        branching: BranchingEvaluator = CHECKLIST_BRANCHING,
        autosave_delay: float | None = None,
    ):
        self.session_id = session_id
        self.branching = branching
        self.store = store
        self.text_inputs: dict[str, str] = {}
        self.vendors = VendorRegistry()
        self._answers: dict[str, dict[str, Answer]] = {}
        self._progress: Progress | None = None
        self._lock = threading.RLock()
        self._saver = DebouncedSaver(self.save, autosave_delay) if store is not None else None

    # ── responses ──
    @property
    def responses(self) -> ChecklistResponses:
        with self._lock:
            return ChecklistResponses(
                controls={c: dict(answers) for c, answers in self._answers.items()},
                text_inputs=dict(self.text_inputs),
            )

    def _values(self) -> dict[str, str]:
        return {qid: a.value for answers in self._answers.values() for qid, a in answers.items()}

    def record_answer(self, control: str, question_id: str, value: str | None) -> list[str]:
        """Set (or clear, when value is None) one answer; returns ids cleared because they became hidden."""
        question = QUESTIONS_BY_ID.get(question_id)
        if question is not None:
            control = question.control
        with self._lock:
            if value is None:
                self._answers.get(control, {}).pop(question_id, None)
            elif question is not None:
                self._answers.setdefault(control, {})[question_id] = checklist_answer(question_id, value)
            else:
                self._answers.setdefault(control, {})[question_id] = Answer(value=value)

            cleared = self._apply_visibility()
            self._changed()
        return cleared

    def _apply_visibility(self) -> list[str]:
        _, cleared = self.branching.prune(self._values())
        for qid in cleared:
            for answers in self._answers.values():
                answers.pop(qid, None)
        if cleared:
            logger.info("Cleared answers to hidden questions: %s", ", ".join(cleared))
        return cleared

    def set_text(self, field: str, value: str) -> None:
        with self._lock:
            self.text_inputs[text_input_key(field)] = value
            self._changed()

    def progress(self) -> Progress:
        with self._lock:
            if self._progress is None:
                values = self._values()
                visible = self.branching.visible_questions((q.id for q in CHECKLIST_QUESTIONS), values)
                answered = sum(1 for qid in visible if qid in values)
                self._progress = Progress(answered=answered, total=len(visible))
            return self._progress

    # ── vendors ──
    def add_vendor(self, name: str, access_level: str = "limited") -> Vendor:
        with self._lock:
            vendor = self.vendors.add(name, access_level)
            self._changed()
        return vendor

    def answer_vendor(self, vendor_id: int, question_id: str, value: str | None) -> Vendor:
        with self._lock:
            vendor = self.vendors.answer(vendor_id, question_id, value)
            self._changed()
        return vendor

    def remove_vendor(self, vendor_id: int) -> None:
        with self._lock:
            self.vendors.remove(vendor_id)
            self._changed()

    # ── analysis ──
    def analyze(self, orchestrator) -> ChecklistResult:
        with self._lock:
            responses = self.responses
            vendors = [v.model_copy(deep=True) for v in self.vendors]
        validate_checklist(responses)
        return orchestrator.analyze_checklist(responses, vendors)

    # ── persistence ──
    def _changed(self) -> None:
        self._progress = None
        if self._saver is not None:
            self._saver.schedule()

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                responses=self.responses,
                timestamp=datetime.now(timezone.utc).isoformat(),
                version=SNAPSHOT_VERSION,
                vendors=[v.model_copy(deep=True) for v in self.vendors],
                next_vendor_id=self.vendors.next_id,
            )

    def save(self) -> bool:
        if self.store is None:
            return False
        return self.store.save(self.snapshot())

    def flush(self) -> None:
        if self._saver is not None:
            self._saver.flush()

    def restore(self, snapshot: SessionSnapshot) -> None:
        with self._lock:
            self._answers = {c: dict(answers) for c, answers in snapshot.responses.controls.items()}
            self.text_inputs = dict(snapshot.responses.text_inputs)
            self.vendors = VendorRegistry(
                (v.model_copy(deep=True) for v in snapshot.vendors), next_id=snapshot.next_vendor_id
            )
            self._apply_visibility()
            self._progress = None

    def restore_saved(self) -> bool:
        if self.store is None:
            return False
        snapshot = self.store.load()
        if snapshot is None:
            return False
        self.restore(snapshot)
        return True


def get_session(sid: str) -> AssessmentSession:
    if sid not in _sessions:
        safe_sid = re.sub(r"[^A-Za-z0-9_-]", "_", sid)
        store = SnapshotStore(key=f"{SNAPSHOT_KEY}-{safe_sid}")
        _sessions[sid] = AssessmentSession(sid, store=store)
    return _sessions[sid]
