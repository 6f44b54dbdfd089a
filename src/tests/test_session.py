"""
Unit tests for backend/analyzer/session.py

Covers:
  - answer recording and clearing of answers that become hidden
  - cached progress and its invalidation
  - vendor edits through the session
  - snapshot / restore and autosave
"""

import threading

import pytest

from conftest import FILLED_TEXT_INPUTS


def _import_session():
    from session import AssessmentSession, Progress, get_session, _sessions
    return AssessmentSession, Progress, get_session, _sessions


@pytest.fixture
def session():
    return _import_session()[0]("s1")


@pytest.fixture
def stored_session(tmp_path):
    from storage import SnapshotStore
    Session = _import_session()[0]
    return Session("s2", store=SnapshotStore(tmp_path), autosave_delay=60)


# ═══════════════════════════════════════════
#  Answers and visibility
# ═══════════════════════════════════════════
class TestAnswers:
    def test_answer_carries_catalogue_text(self, session):
        from catalog import QUESTIONS_BY_ID
        session.record_answer("accessControl", "q4_3", "unsure")
        answer = session.responses.controls["accessControl"]["q4_3"]
        assert answer.value == "unsure"
        assert answer.critical is True
        assert answer.text == QUESTIONS_BY_ID["q4_3"].text

    def test_catalogue_control_wins(self, session):
        session.record_answer("malware", "q1_1", "pass")
        assert "q1_1" in session.responses.controls["firewalls"]
        assert "q1_1" not in session.responses.controls.get("malware", {})

    def test_hiding_parent_clears_dependant(self, session):
        session.record_answer("scope", "q6_1", "pass")
        session.record_answer("scope", "q6_3", "fail")
        cleared = session.record_answer("scope", "q6_1", "fail")
        assert cleared == ["q6_3"]
        assert "q6_3" not in session.responses.controls["scope"]

    def test_clearing_parent_clears_dependant(self, session):
        session.record_answer("firewalls", "q1_1", "partial")
        session.record_answer("firewalls", "q1_4", "pass")
        cleared = session.record_answer("firewalls", "q1_1", None)
        assert cleared == ["q1_4"]
        assert session.responses.controls["firewalls"] == {}

    def test_set_text(self, session):
        session.set_text("deviceCount", "12")
        assert session.responses.text_inputs == {"deviceCount": "12"}

    def test_set_text_snake_case_key(self, session):
        session.set_text("device_count", "12")
        assert session.responses.text_inputs == {"deviceCount": "12"}


# ═══════════════════════════════════════════
#  Progress
# ═══════════════════════════════════════════
class TestProgress:
    def test_hidden_questions_not_counted(self, session):
        from catalog import CHECKLIST_QUESTIONS, CHECKLIST_VISIBILITY
        p = session.progress()
        assert p.answered == 0
        assert p.total == len(CHECKLIST_QUESTIONS) - len(CHECKLIST_VISIBILITY)
        assert p.percent == 0
        assert p.low_completion is True

    def test_revealed_question_added_to_total(self, session):
        before = session.progress().total
        session.record_answer("scope", "q6_1", "pass")
        p = session.progress()
        assert p.total == before + 1
        assert p.answered == 1

    def test_cached_until_changed(self, session):
        first = session.progress()
        assert session.progress() is first
        session.record_answer("firewalls", "q1_2", "pass")
        assert session.progress() is not first

    def test_percent(self):
        Progress = _import_session()[1]
        assert Progress(answered=12, total=24).percent == 50
        assert Progress(answered=12, total=24).low_completion is False
        assert Progress(answered=0, total=0).percent == 0


# ═══════════════════════════════════════════
#  Vendors
# ═══════════════════════════════════════════
class TestVendors:
    def test_vendor_lifecycle(self, session):
        vendor = session.add_vendor("Acme IT", "network")
        session.answer_vendor(vendor.id, "v_mfa", "pass")
        assert session.vendors.risk(vendor.id).assessed is True
        session.remove_vendor(vendor.id)
        assert len(session.vendors) == 0

    def test_vendors_reach_analysis(self, session):
        from analyzer import AnalysisOrchestrator
        for control_q in ["q1_1", "q1_2", "q1_3"]:
            session.record_answer("firewalls", control_q, "pass")
        for key, value in FILLED_TEXT_INPUTS.items():
            session.set_text(key, value)
        vendor = session.add_vendor("MSP", "system")
        session.answer_vendor(vendor.id, "v_certification", "fail")
        result = session.analyze(AnalysisOrchestrator())
        assert result.overall_status == "NEEDS_WORK"
        assert result.warnings[-1].control == "vendors"

    def test_analyze_validates_first(self, session):
        from analyzer import AnalysisOrchestrator
        from exceptions import IncompleteAssessmentError
        session.record_answer("firewalls", "q1_1", "pass")
        with pytest.raises(IncompleteAssessmentError) as exc:
            session.analyze(AnalysisOrchestrator())
        assert len(exc.value.missing_fields) == 7


# ═══════════════════════════════════════════
#  Persistence
# ═══════════════════════════════════════════
class TestPersistence:
    def test_no_store(self, session):
        session.record_answer("firewalls", "q1_1", "pass")
        assert session.save() is False
        assert session.restore_saved() is False

    def test_flush_saves_pending_edit(self, stored_session):
        stored_session.record_answer("firewalls", "q1_1", "pass")
        assert not stored_session.store.path.exists()
        stored_session.flush()
        assert stored_session.store.path.exists()

    def test_restore_round_trip(self, stored_session):
        Session = _import_session()[0]
        stored_session.record_answer("accessControl", "q4_3", "unsure")
        stored_session.set_text("deviceCount", "5")
        vendor = stored_session.add_vendor("Acme IT", "cloud")
        stored_session.remove_vendor(vendor.id)
        stored_session.flush()

        fresh = Session("s2", store=stored_session.store, autosave_delay=60)
        assert fresh.restore_saved() is True
        assert fresh.responses == stored_session.responses
        assert fresh.add_vendor("Next").id == vendor.id + 1

    def test_restore_clears_hidden_answers(self, session):
        from catalog import checklist_answer
        from models import ChecklistResponses, SessionSnapshot
        snapshot = SessionSnapshot(
            responses=ChecklistResponses(controls={"scope": {
                "q6_1": checklist_answer("q6_1", "fail"),
                "q6_3": checklist_answer("q6_3", "pass"),
            }}),
            timestamp="2026-01-05T09:30:00+00:00",
            version="1.0",
        )
        session.restore(snapshot)
        assert set(session.responses.controls["scope"]) == {"q6_1"}

    def test_snapshot_version(self, session):
        from storage import SNAPSHOT_VERSION
        assert session.snapshot().version == SNAPSHOT_VERSION


# ═══════════════════════════════════════════
#  Session registry
# ═══════════════════════════════════════════
class TestGetSession:
    def test_same_id_same_session(self):
        _, _, get_session, sessions = _import_session()
        try:
            assert get_session("reg-1") is get_session("reg-1")
        finally:
            sessions.pop("reg-1", None)

    def test_unsafe_id_sanitised_in_key(self):
        _, _, get_session, sessions = _import_session()
        try:
            s = get_session("../etc/passwd")
            assert s.store.key == "cyber-essentials-assessment-___etc_passwd"
            assert "/" not in s.store.path.name
        finally:
            sessions.pop("../etc/passwd", None)


# ═══════════════════════════════════════════
#  Autosave thread
# ═══════════════════════════════════════════
class TestConcurrentSave:
    def test_save_waits_for_edit_in_progress(self, stored_session):
        stored_session.record_answer("firewalls", "q1_1", "pass")
        stored_session._lock.acquire()
        try:
            writer = threading.Thread(target=stored_session.save)
            writer.start()
            writer.join(0.1)
            assert writer.is_alive()
            assert not stored_session.store.path.exists()
        finally:
            stored_session._lock.release()
        writer.join(2)
        assert not writer.is_alive()
        assert stored_session.store.path.exists()

    def test_snapshot_is_detached_from_later_edits(self, stored_session):
        stored_session.record_answer("firewalls", "q1_1", "pass")
        snap = stored_session.snapshot()
        stored_session.record_answer("firewalls", "q1_1", "fail")
        stored_session.set_text("deviceCount", "3")
        assert snap.responses.controls["firewalls"]["q1_1"].value == "pass"
        assert snap.responses.text_inputs == {}
