from dataclasses import dataclass
from typing import Iterable, Mapping

from catalog import CHECKLIST_VISIBILITY
from models import ChecklistResponses


@dataclass(frozen=True)
class VisibilityRule:
    question_id: str
    parent_id: str
    allowed_values: frozenset[str]

    def is_satisfied(self, values: Mapping[str, str]) -> bool:
        return values.get(self.parent_id) in self.allowed_values


class BranchingEvaluator:
    """
    Decides which conditional questions are in scope given the current answers.
    A question without a rule is always visible.
    """

    def __init__(self, rules: Iterable[VisibilityRule]):
        self.rules = {r.question_id: r for r in rules}

    @classmethod
    def from_table(cls, table: Mapping[str, tuple[str, Iterable[str]]]) -> "BranchingEvaluator":
        return cls(
            VisibilityRule(question_id=qid, parent_id=parent, allowed_values=frozenset(allowed))
            for qid, (parent, allowed) in table.items()
        )

    def dependants_of(self, parent_id: str) -> list[str]:
        return [qid for qid, r in self.rules.items() if r.parent_id == parent_id]

    def is_visible(self, question_id: str, values: Mapping[str, str]) -> bool:
        return question_id not in self.hidden_questions(values)

    def hidden_questions(self, values: Mapping[str, str]) -> set[str]:
        # Answers of hidden questions count as absent, so a hidden parent hides its dependants too.
        current = dict(values)
        hidden: set[str] = set()
        changed = True
        while changed:
            changed = False
            for qid, rule in self.rules.items():
                if qid not in hidden and not rule.is_satisfied(current):
                    hidden.add(qid)
                    current.pop(qid, None)
                    changed = True
        return hidden

    def visible_questions(self, question_ids: Iterable[str], values: Mapping[str, str]) -> list[str]:
        hidden = self.hidden_questions(values)
        return [qid for qid in question_ids if qid not in hidden]

    def prune(self, values: Mapping[str, str]) -> tuple[dict[str, str], list[str]]:
        """Return (answers still in scope, ids whose answers were cleared)."""
        hidden = self.hidden_questions(values)
        kept = {qid: v for qid, v in values.items() if qid not in hidden}
        cleared = sorted(qid for qid in values if qid in hidden)
        return kept, cleared

    def prune_checklist(self, responses: ChecklistResponses) -> tuple[ChecklistResponses, list[str]]:
        hidden = self.hidden_questions(responses.flat_values())
        if not hidden:
            return responses, []
        controls = {
            control: {qid: a for qid, a in answers.items() if qid not in hidden}
            for control, answers in responses.controls.items()
        }
        cleared = sorted(qid for answers in responses.controls.values() for qid in answers if qid in hidden)
        return responses.model_copy(update={"controls": controls}), cleared


CHECKLIST_BRANCHING = BranchingEvaluator.from_table(CHECKLIST_VISIBILITY)
