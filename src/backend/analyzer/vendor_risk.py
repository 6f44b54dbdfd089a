"""
Third-party vendor risk model.

Each vendor answers a weighted question set; the answered share of the weight
gives a raw score. The vendor's access level then amplifies the residual risk
(100 - raw), so a high-access vendor with a mediocre raw score falls into the
high-risk band much sooner than a limited-access one.
"""

import logging
from typing import Iterable

from catalog import ACCESS_MULTIPLIERS, VENDOR_ANSWER_FACTORS, VENDOR_WEIGHTS
from exceptions import UnknownVendorError
from models import Vendor, VendorRisk, VendorSummary
from scoring import band, mean

logger = logging.getLogger(__name__)

RISK_BANDS = [(70, "low"), (40, "medium")]

NOT_ASSESSED = VendorRisk(score=0, level="medium", raw_score=None, assessed=False)


def raw_vendor_score(answers: dict[str, str]) -> float | None:
    earned = 0.0
    possible = 0
    for qid, value in answers.items():
        weight = VENDOR_WEIGHTS.get(qid)
        if weight is None or value not in VENDOR_ANSWER_FACTORS:
            continue
        earned += weight * VENDOR_ANSWER_FACTORS[value]
        possible += weight
    if possible == 0:
        return None
    return earned / possible * 100


def adjust_for_access(raw_score: float, access_level: str) -> float:
    multiplier = ACCESS_MULTIPLIERS.get(access_level, 1.0)
    risk = (100 - raw_score) * multiplier
    return max(0.0, min(100.0, 100 - risk))


def calculate_vendor_risk(vendor: Vendor) -> VendorRisk:
    raw = raw_vendor_score(vendor.answers)
    if raw is None:
        return NOT_ASSESSED
    # band on the exact score; rounding is for display only
    score = adjust_for_access(raw, vendor.access_level)
    return VendorRisk(
        score=round(score, 1), level=band(score, RISK_BANDS, "high"), raw_score=round(raw, 1)
    )


def summarize_vendors(vendors: Iterable[Vendor]) -> VendorSummary:
    risks = [calculate_vendor_risk(v) for v in vendors]
    assessed = [r for r in risks if r.assessed]
    avg = mean(r.score for r in assessed)
    return VendorSummary(
        total=len(risks),
        assessed=len(assessed),
        low=sum(1 for r in risks if r.level == "low"),
        medium=sum(1 for r in risks if r.level == "medium"),
        high=sum(1 for r in risks if r.level == "high"),
        average_score=round(avg, 1) if avg is not None else None,
    )


class VendorRegistry:
    """Vendors owned by one assessment session. Ids increase and are never reused."""

    def __init__(self, vendors: Iterable[Vendor] = (), next_id: int | None = None):
        self._vendors: dict[int, Vendor] = {}
        for v in vendors:
            self._vendors[v.id] = v
        start = max(self._vendors, default=0) + 1
        self.next_id = max(start, next_id or 0)

    def _allocate_id(self) -> int:
        vendor_id = self.next_id
        self.next_id += 1
        return vendor_id

    def __iter__(self):
        return iter(self._vendors.values())

    def __len__(self) -> int:
        return len(self._vendors)

    def get(self, vendor_id: int) -> Vendor:
        try:
            return self._vendors[vendor_id]
        except KeyError:
            raise UnknownVendorError(vendor_id) from None

    def add(self, name: str, access_level: str = "limited") -> Vendor:
        vendor = Vendor(id=self._allocate_id(), name=name, access_level=access_level)
        self._vendors[vendor.id] = vendor
        logger.info("Added vendor %s (%s access)", vendor.id, access_level)
        return vendor

    def answer(self, vendor_id: int, question_id: str, value: str | None) -> Vendor:
        vendor = self.get(vendor_id)
        if question_id not in VENDOR_WEIGHTS:
            raise ValueError(f"Unknown vendor question: {question_id}")
        if value is None:
            vendor.answers.pop(question_id, None)
        elif value not in VENDOR_ANSWER_FACTORS:
            raise ValueError(f"Invalid answer value: {value}")
        else:
            vendor.answers[question_id] = value
        return vendor

    def remove(self, vendor_id: int) -> None:
        self.get(vendor_id)
        del self._vendors[vendor_id]

    def risk(self, vendor_id: int) -> VendorRisk:
        return calculate_vendor_risk(self.get(vendor_id))

    def summary(self) -> VendorSummary:
        return summarize_vendors(self._vendors.values())
