"""Warranty window evaluation for assets.

Everything here is a pure function of the asset's warranty expiry and an
explicit reference time, so the same inputs always give the same answer.
"""

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from django.db import models


EXPIRING_WINDOW_DAYS = 30

_ONE_DAY = timedelta(days=1)


class WarrantyStatus(models.TextChoices):
    NONE = 'none', 'No warranty'
    VALID = 'valid', 'Valid'
    EXPIRING = 'expiring', 'Expiring'
    EXPIRED = 'expired', 'Expired'


@dataclass(frozen=True)
class WarrantyEvaluation:
    status: WarrantyStatus
    days_remaining: Optional[int] = None

    def as_dict(self):
        return {'status': self.status.value, 'days_remaining': self.days_remaining}


def evaluate(asset, now) -> WarrantyEvaluation:
    """Classify ``asset``'s warranty relative to ``now``.

    ``days_remaining`` counts whole days rounded up; for an expired warranty
    it is the number of days since expiry.
    """
    expiry = asset.warranty_expiry
    if expiry is None:
        return WarrantyEvaluation(WarrantyStatus.NONE)

    diff_days = math.ceil((expiry - now) / _ONE_DAY)
    if diff_days < 0:
        return WarrantyEvaluation(WarrantyStatus.EXPIRED, abs(diff_days))
    if diff_days <= EXPIRING_WINDOW_DAYS:
        return WarrantyEvaluation(WarrantyStatus.EXPIRING, diff_days)
    return WarrantyEvaluation(WarrantyStatus.VALID, diff_days)


def is_eligible(asset, now) -> bool:
    """A request submitted at ``now`` may be covered by the asset's warranty."""
    return asset.warranty_expiry is not None and asset.warranty_expiry > now


def describe(evaluation: WarrantyEvaluation) -> str:
    if evaluation.status == WarrantyStatus.EXPIRED:
        return f"Warranty expired {evaluation.days_remaining} days ago"
    if evaluation.status == WarrantyStatus.EXPIRING:
        return f"Warranty expires in {evaluation.days_remaining} days"
    if evaluation.status == WarrantyStatus.VALID:
        return f"Warranty valid for {evaluation.days_remaining} more days"
    return "No warranty on record"
