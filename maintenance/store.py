"""The authoritative collection of maintenance requests.

Every command goes through ``RequestStore``: it validates against the
lifecycle rules and the warranty evaluator, then commits inside a single
transaction, so a rejected command leaves nothing half-applied.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from . import assignment, lifecycle, metrics, warranty
from .exceptions import InvalidOperation, InvalidTransition, NotFound
from .models import (
    Asset,
    Attachment,
    AssigneeKind,
    MaintenanceRequest,
    OwnershipChange,
    Priority,
    RequestCategory,
    RequestHistory,
    RequestStatus,
    format_reference,
)
from .roles import ROLE_ADMIN, ROLE_DISPATCHER, ROLE_LABELS, require_role

log = logging.getLogger("assetdesk.maintenance")

ANY_ROLE = tuple(ROLE_LABELS)


def _parse_choice(choices, value, field):
    try:
        return choices(value)
    except ValueError:
        raise ValidationError({field: f"'{value}' is not a valid choice."}) from None


class RequestStore:

    def get_request(self, request_id):
        try:
            return (
                MaintenanceRequest.objects
                .select_related('asset', 'helpdesk_assignee', 'vendor_assignee')
                .get(reference=request_id)
            )
        except MaintenanceRequest.DoesNotExist:
            raise NotFound(f"Maintenance request {request_id!r} does not exist") from None

    def _locked(self, request_id):
        try:
            return MaintenanceRequest.objects.select_for_update().get(reference=request_id)
        except MaintenanceRequest.DoesNotExist:
            raise NotFound(f"Maintenance request {request_id!r} does not exist") from None

    def _record(self, maintenance_request, action, actor, now, comment=''):
        RequestHistory.objects.create(
            request=maintenance_request,
            action=action,
            changed_by=actor,
            comment=comment[:255],
            timestamp=now,
        )

    # -- Commands ------------------------------------------------------------

    def create_request(self, actor, *, asset_id, title, description,
                       priority=Priority.MEDIUM, category=RequestCategory.HARDWARE,
                       notes='', estimated_completion=None, now=None):
        require_role(actor, *ANY_ROLE)
        now = now or timezone.now()

        try:
            asset = Asset.objects.get(pk=asset_id)
        except (Asset.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Asset {asset_id!r} does not exist") from None

        maintenance_request = MaintenanceRequest(
            asset=asset,
            submitted_by=actor,
            title=title,
            description=description,
            priority=priority,
            category=category,
            notes=notes,
            estimated_completion=estimated_completion,
            status=RequestStatus.PENDING,
            submitted_at=now,
            # Frozen here; later changes to the asset's warranty do not move it.
            warranty_eligible=warranty.is_eligible(asset, now),
        )
        maintenance_request.full_clean()

        with transaction.atomic():
            maintenance_request.save()
            maintenance_request.reference = format_reference(maintenance_request.pk)
            maintenance_request.save(update_fields=['reference'])
            self._record(maintenance_request, RequestHistory.ACTION_CREATED, actor, now)

        log.info(
            "%s submitted for asset %s (warranty eligible: %s)",
            maintenance_request.reference, asset.pk, maintenance_request.warranty_eligible,
        )
        return maintenance_request

    def assign(self, actor, request_id, assignee_id, kind, now=None):
        require_role(actor, ROLE_ADMIN, ROLE_DISPATCHER)
        kind = _parse_choice(AssigneeKind, kind, 'kind')
        now = now or timezone.now()

        with transaction.atomic():
            maintenance_request = self._locked(request_id)
            assignee = assignment.resolve_assignee(kind, assignee_id)
            assignment.commit_assignment(maintenance_request, assignee, kind, now)
            self._record(
                maintenance_request, RequestHistory.ACTION_ASSIGNED, actor, now,
                comment=f"{kind.label}: {assignee.name}",
            )
        return maintenance_request

    def update_status(self, actor, request_id, new_status, resolution=None, cost=None, now=None):
        require_role(actor, ROLE_ADMIN)
        target = _parse_choice(RequestStatus, new_status, 'status')
        now = now or timezone.now()

        with transaction.atomic():
            maintenance_request = self._locked(request_id)
            previous = maintenance_request.status

            changed = lifecycle.apply_transition(maintenance_request, target, now)
            if resolution is not None:
                maintenance_request.resolution = resolution
                changed.append('resolution')
            if cost is not None:
                maintenance_request.cost = cost
                changed.append('cost')

            # Status precondition re-checked at commit time.
            updated = MaintenanceRequest.objects.filter(
                pk=maintenance_request.pk,
                status=previous,
            ).update(**{name: getattr(maintenance_request, name) for name in changed})
            if not updated:
                raise InvalidTransition(previous, target, "the request was changed by another command")

            assignment.release_assignee(maintenance_request, previous)
            self._record(
                maintenance_request, RequestHistory.ACTION_STATUS_CHANGED, actor, now,
                comment=f"{previous} -> {target}",
            )

        log.info("%s moved from %s to %s", maintenance_request.reference, previous, target.value)
        return maintenance_request

    def add_attachment(self, actor, request_id, *, file_name, file_size, file_ref, now=None):
        require_role(actor, *ANY_ROLE)
        now = now or timezone.now()

        with transaction.atomic():
            maintenance_request = self._locked(request_id)
            attachment = Attachment(
                request=maintenance_request,
                file_name=file_name,
                file_ref=file_ref,
                file_size=file_size,
                uploaded_at=now,
            )
            attachment.full_clean()
            attachment.save()
            self._record(
                maintenance_request, RequestHistory.ACTION_ATTACHMENT_ADDED, actor, now,
                comment=file_name,
            )

        log.info("%s: attached %s (%s bytes)", maintenance_request.reference, file_name, file_size)
        return list(maintenance_request.attachments.all())

    def set_warranty_used(self, actor, request_id, used, now=None):
        require_role(actor, ROLE_ADMIN)
        now = now or timezone.now()

        with transaction.atomic():
            maintenance_request = self._locked(request_id)
            if used and not maintenance_request.warranty_eligible:
                raise InvalidOperation(
                    f"{maintenance_request.reference} is not eligible for warranty service"
                )
            maintenance_request.warranty_used = bool(used)
            maintenance_request.save(update_fields=['warranty_used'])
            self._record(
                maintenance_request, RequestHistory.ACTION_WARRANTY_UPDATED, actor, now,
                comment='used' if used else 'not used',
            )

        log.info("%s warranty used: %s", maintenance_request.reference, maintenance_request.warranty_used)
        return maintenance_request

    def delete_request(self, actor, request_id):
        require_role(actor, ROLE_ADMIN)

        with transaction.atomic():
            maintenance_request = self._locked(request_id)
            assignment.release_assignee(maintenance_request, maintenance_request.status)
            maintenance_request.delete()

        log.info("%s deleted by %s", request_id, actor)

    # -- Queries -------------------------------------------------------------

    def list_requests(self, search='', status=None, priority=None):
        queryset = (
            MaintenanceRequest.objects
            .select_related('asset', 'helpdesk_assignee', 'vendor_assignee')
            .prefetch_related('attachments')
        )
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search)
                | Q(description__icontains=search)
                | Q(reference__icontains=search)
            )
        if status and status != 'all':
            queryset = queryset.filter(status=status)
        if priority and priority != 'all':
            queryset = queryset.filter(priority=priority)
        return queryset

    def summary(self):
        return MaintenanceRequest.objects.aggregate(
            total=Count('pk'),
            pending=Count('pk', filter=Q(status=RequestStatus.PENDING)),
            in_progress=Count('pk', filter=Q(status=RequestStatus.IN_PROGRESS)),
            completed=Count('pk', filter=Q(status=RequestStatus.COMPLETED)),
            cancelled=Count('pk', filter=Q(status=RequestStatus.CANCELLED)),
            warranty_eligible=Count('pk', filter=Q(warranty_eligible=True)),
        )

    def query_metrics(self, filters=None, now=None):
        now = now or timezone.now()
        with transaction.atomic():
            requests = list(MaintenanceRequest.objects.all())
            assets = list(Asset.objects.all())
            ownership_changes = list(OwnershipChange.objects.all())
        return metrics.aggregate(requests, assets, ownership_changes, filters, now=now)
