from catalog import MIN_FRAMEWORK_ANSWERS, REQUIRED_TEXT_FIELDS
from exceptions import IncompleteAssessmentError
from models import ChecklistResponses, FrameworkResponses


def missing_text_fields(responses: ChecklistResponses) -> list[str]:
    return [
        label for key, label in REQUIRED_TEXT_FIELDS.items()
        if not (responses.text_inputs.get(key) or "").strip()
    ]


def validate_checklist(responses: ChecklistResponses) -> None:
    answered = responses.answered_count()
    if answered == 0:
        raise IncompleteAssessmentError(
            "Please answer at least some questions before analyzing.", answered=0
        )
    missing = missing_text_fields(responses)
    if missing:
        raise IncompleteAssessmentError(
            "Please complete all free-text fields before submitting: " + ", ".join(missing),
            missing_fields=missing,
            answered=answered,
        )


def validate_framework(responses: FrameworkResponses) -> None:
    answered = responses.answered_count()
    if answered < MIN_FRAMEWORK_ANSWERS:
        raise IncompleteAssessmentError(
            f"Please answer at least {MIN_FRAMEWORK_ANSWERS} questions before running analysis.",
            answered=answered,
        )
