"""Routing of pending requests to a help-desk employee or an external vendor."""

import logging

from django.db.models import F

from . import lifecycle
from .exceptions import AssigneeUnavailable, InvalidState, NotFound
from .models import AssigneeKind, HelpDeskEmployee, MaintenanceRequest, RequestStatus, Vendor

log = logging.getLogger("assetdesk.maintenance")


def resolve_assignee(kind, assignee_id):
    """Load the employee or vendor behind ``assignee_id``, locked for update."""
    kind = AssigneeKind(kind)
    model = HelpDeskEmployee if kind == AssigneeKind.HELPDESK else Vendor
    try:
        return model.objects.select_for_update().get(pk=assignee_id)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{kind.label} {assignee_id!r} does not exist") from None


def check_assignable(maintenance_request, assignee, kind):
    if maintenance_request.status != RequestStatus.PENDING:
        raise InvalidState(
            f"{maintenance_request.reference} is {maintenance_request.status}; "
            "only pending requests can be assigned"
        )
    if kind == AssigneeKind.HELPDESK and not assignee.available:
        raise AssigneeUnavailable(f"{assignee.name} is not available for new requests")


def commit_assignment(maintenance_request, assignee, kind, now):
    """Route ``maintenance_request`` to ``assignee`` and start the work.

    Must run inside a transaction. The status the caller read is re-checked
    by the UPDATE itself, so of two commands racing on the same pending
    request only one can commit; the other raises ``InvalidState``.
    """
    kind = AssigneeKind(kind)
    check_assignable(maintenance_request, assignee, kind)

    lifecycle.check_transition(maintenance_request.status, RequestStatus.IN_PROGRESS, via_assignment=True)

    fields = {
        'assignee_type': kind,
        'helpdesk_assignee': assignee if kind == AssigneeKind.HELPDESK else None,
        'vendor_assignee': assignee if kind == AssigneeKind.VENDOR else None,
    }
    updated = MaintenanceRequest.objects.filter(
        pk=maintenance_request.pk,
        status=maintenance_request.status,
    ).update(status=RequestStatus.IN_PROGRESS, **fields)
    if not updated:
        raise InvalidState(f"{maintenance_request.reference} was changed by another command")

    lifecycle.apply_transition(maintenance_request, RequestStatus.IN_PROGRESS, now, via_assignment=True)
    for name, value in fields.items():
        setattr(maintenance_request, name, value)

    if kind == AssigneeKind.HELPDESK:
        HelpDeskEmployee.objects.filter(pk=assignee.pk).update(workload=F('workload') + 1)
        assignee.refresh_from_db(fields=['workload'])

    log.info("%s assigned to %s %s", maintenance_request.reference, kind.value, assignee.pk)
    return maintenance_request


def release_assignee(maintenance_request, from_status):
    """Drop the workload a request leaving ``from_status`` was holding.

    Only in-progress help-desk work counts towards an employee's workload.
    """
    if (from_status == RequestStatus.IN_PROGRESS
            and maintenance_request.assignee_type == AssigneeKind.HELPDESK):
        HelpDeskEmployee.objects.filter(
            pk=maintenance_request.helpdesk_assignee_id,
            workload__gt=0,
        ).update(workload=F('workload') - 1)


def available_employees():
    return HelpDeskEmployee.objects.filter(available=True).order_by('workload', 'name')
