"""
Unit tests for backend/analyzer/branching.py
"""

from conftest import build_checklist


def _import_branching():
    from branching import BranchingEvaluator, VisibilityRule, CHECKLIST_BRANCHING
    return BranchingEvaluator, VisibilityRule, CHECKLIST_BRANCHING


# ═══════════════════════════════════════════
#  Checklist rules
# ═══════════════════════════════════════════
class TestChecklistVisibility:
    def test_unconditional_question_always_visible(self):
        branching = _import_branching()[2]
        assert branching.is_visible("q1_1", {}) is True

    def test_dependant_hidden_until_parent_answered(self):
        branching = _import_branching()[2]
        assert branching.is_visible("q6_3", {}) is False
        assert branching.is_visible("q6_3", {"q6_1": "pass"}) is True

    def test_dependant_hidden_by_other_parent_value(self):
        branching = _import_branching()[2]
        assert branching.is_visible("q6_3", {"q6_1": "fail"}) is False
        assert branching.is_visible("q4_6", {"q4_4": "partial"}) is True
        assert branching.is_visible("q4_6", {"q4_4": "unsure"}) is False

    def test_dependants_of(self):
        branching = _import_branching()[2]
        assert branching.dependants_of("q6_1") == ["q6_3"]
        assert branching.dependants_of("q2_1") == []

    def test_visible_questions_preserves_order(self):
        branching = _import_branching()[2]
        visible = branching.visible_questions(["q6_1", "q6_2", "q6_3"], {"q6_1": "fail"})
        assert visible == ["q6_1", "q6_2"]


# ═══════════════════════════════════════════
#  Pruning
# ═══════════════════════════════════════════
class TestPrune:
    def test_hidden_answer_cleared(self):
        branching = _import_branching()[2]
        kept, cleared = branching.prune({"q6_1": "fail", "q6_3": "pass", "q6_2": "pass"})
        assert kept == {"q6_1": "fail", "q6_2": "pass"}
        assert cleared == ["q6_3"]

    def test_nothing_to_clear(self):
        branching = _import_branching()[2]
        values = {"q6_1": "pass", "q6_3": "pass"}
        kept, cleared = branching.prune(values)
        assert kept == values
        assert cleared == []

    def test_nested_dependants_cascade(self):
        BranchingEvaluator, VisibilityRule, _ = _import_branching()
        evaluator = BranchingEvaluator([
            VisibilityRule("b", "a", frozenset({"pass"})),
            VisibilityRule("c", "b", frozenset({"pass"})),
        ])
        kept, cleared = evaluator.prune({"a": "fail", "b": "pass", "c": "pass"})
        assert kept == {"a": "fail"}
        assert cleared == ["b", "c"]

    def test_prune_checklist(self):
        branching = _import_branching()[2]
        responses = build_checklist({"q1_1": "fail"})
        pruned, cleared = branching.prune_checklist(responses)
        assert cleared == ["q1_4"]
        assert "q1_4" not in pruned.controls["firewalls"]
        assert "q1_4" in responses.controls["firewalls"]

    def test_prune_checklist_untouched_returns_same_object(self, all_pass_checklist):
        branching = _import_branching()[2]
        pruned, cleared = branching.prune_checklist(all_pass_checklist)
        assert pruned is all_pass_checklist
        assert cleared == []

    def test_from_table(self):
        BranchingEvaluator = _import_branching()[0]
        evaluator = BranchingEvaluator.from_table({"x": ("y", ("pass",))})
        assert evaluator.is_visible("x", {"y": "pass"})
        assert not evaluator.is_visible("x", {"y": "partial"})
