"""Dashboard aggregates over requests, assets and ownership changes.

``aggregate`` is a pure read over the collections it is given: it never
touches the database and returns the same figures for the same inputs.
Category and branch filter on the asset, status filters requests only, so
asset-level figures follow category and branch alone.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from .models import AssetStatus, RequestStatus

log = logging.getLogger("assetdesk.maintenance")

ALL = 'all'

STAGE_ACTIVE = 'active'
STAGE_MAINTENANCE_PENDING = 'maintenance_pending'
STAGE_IN_MAINTENANCE = 'in_maintenance'
STAGE_RETIRED = 'retired'

# Ordered from first to last stage of an asset's operational life.
LIFECYCLE_STAGES = (STAGE_ACTIVE, STAGE_MAINTENANCE_PENDING, STAGE_IN_MAINTENANCE, STAGE_RETIRED)

_YEAR = timedelta(days=365.25)


def _clean(value):
    return None if value in (None, '', ALL) else value


@dataclass(frozen=True)
class MetricsFilter:
    category: Optional[str] = None
    branch: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_params(cls, category=None, branch=None, status=None):
        """Build a filter from dashboard selections, where "all" means no restriction."""
        return cls(category=_clean(category), branch=_clean(branch), status=_clean(status))

    def matches_asset(self, asset):
        if self.category is not None and asset.category != self.category:
            return False
        if self.branch is not None and asset.branch != self.branch:
            return False
        return True

    def matches_request(self, maintenance_request, asset):
        if self.status is not None and maintenance_request.status != self.status:
            return False
        if asset is None:
            return self.category is None and self.branch is None
        return self.matches_asset(asset)


@dataclass(frozen=True)
class DashboardMetrics:
    status_counts: dict
    branch_activity: dict
    ownership_period: dict
    lifecycle_funnel: dict
    asset_status: dict = field(default_factory=dict)

    def as_dict(self):
        return {
            'status_counts': dict(self.status_counts),
            'branch_activity': dict(self.branch_activity),
            'ownership_period': {
                branch: round_years(years) for branch, years in self.ownership_period.items()
            },
            'lifecycle_funnel': dict(self.lifecycle_funnel),
            'asset_status': dict(self.asset_status),
        }


def round_years(years):
    """Whole years for display, halves rounded up."""
    return int(math.floor(years + 0.5))


def lifecycle_stage(asset, open_status=None):
    """Stage of ``asset`` given the most advanced status among its open requests."""
    if asset.status == AssetStatus.RETIRED:
        return STAGE_RETIRED
    if asset.status == AssetStatus.IN_REPAIR or open_status == RequestStatus.IN_PROGRESS:
        return STAGE_IN_MAINTENANCE
    if open_status == RequestStatus.PENDING:
        return STAGE_MAINTENANCE_PENDING
    return STAGE_ACTIVE


def _open_status_by_asset(requests):
    open_status = {}
    for maintenance_request in requests:
        if maintenance_request.status == RequestStatus.IN_PROGRESS:
            open_status[maintenance_request.asset_id] = RequestStatus.IN_PROGRESS
        elif maintenance_request.status == RequestStatus.PENDING:
            open_status.setdefault(maintenance_request.asset_id, RequestStatus.PENDING)
    return open_status


def aggregate(requests, assets, ownership_changes=(), filters=None, *, now):
    """Dashboard figures for the requests and assets selected by ``filters``.

    Summing the figures over a partition of category or branch gives the
    unfiltered totals for every count. Over a partition of status only
    ``status_counts`` adds up, since the asset-level figures ignore status.
    Asset statuses outside ``AssetStatus`` are logged and left out of
    ``asset_status``.
    """
    filters = filters or MetricsFilter()
    requests = list(requests)
    assets_by_id = {asset.pk: asset for asset in assets}

    selected_assets = [asset for asset in assets_by_id.values() if filters.matches_asset(asset)]
    selected_requests = [
        maintenance_request for maintenance_request in requests
        if filters.matches_request(maintenance_request, assets_by_id.get(maintenance_request.asset_id))
    ]

    status_counts = {status.value: 0 for status in RequestStatus}
    for maintenance_request in selected_requests:
        status_counts[maintenance_request.status] += 1

    selected_ids = {asset.pk for asset in selected_assets}
    activity = defaultdict(int)
    for asset in selected_assets:
        activity.setdefault(asset.branch, 0)
    for change in ownership_changes:
        if change.asset_id in selected_ids:
            activity[assets_by_id[change.asset_id].branch] += 1

    held = defaultdict(list)
    for asset in selected_assets:
        if asset.owned_since is None:
            continue
        held[asset.branch].append(max(now - asset.owned_since, timedelta(0)) / _YEAR)

    open_status = _open_status_by_asset(requests)
    funnel = {stage: 0 for stage in LIFECYCLE_STAGES}
    asset_status = {status.value: 0 for status in AssetStatus}
    for asset in selected_assets:
        funnel[lifecycle_stage(asset, open_status.get(asset.pk))] += 1
        if asset.status in asset_status:
            asset_status[asset.status] += 1
        else:
            log.warning("Asset %s has unknown status %r", asset.pk, asset.status)

    return DashboardMetrics(
        status_counts=status_counts,
        branch_activity={branch: activity[branch] for branch in sorted(activity)},
        ownership_period={
            branch: math.fsum(years) / len(years) for branch, years in sorted(held.items())
        },
        lifecycle_funnel=funnel,
        asset_status=asset_status,
    )
