import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import JsonResponse
from django.utils import timezone
from django.views import View

from . import warranty
from .assignment import available_employees
from .exceptions import MaintenanceError, NotFound
from .forms import (
    AssignForm,
    AttachmentForm,
    MetricsFilterForm,
    RequestCreateForm,
    RequestSearchForm,
    StatusUpdateForm,
    WarrantyUsedForm,
)
from .metrics import MetricsFilter
from .store import RequestStore

log = logging.getLogger("assetdesk.maintenance")


def error_response(kind, detail, status):
    return JsonResponse({'error': kind, 'detail': detail}, status=status)


def _validation_detail(exc):
    return exc.message_dict if hasattr(exc, 'error_dict') else exc.messages


class StoreViewMixin(LoginRequiredMixin):
    """Runs a store command and turns rejected commands into JSON errors."""

    store = RequestStore()

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except ValidationError as exc:
            return error_response('validation_error', _validation_detail(exc), 400)
        except PermissionDenied as exc:
            log.warning("%s denied %s %s: %s", request.user, request.method, request.path, exc)
            return error_response('permission_denied', str(exc), 403)
        except NotFound as exc:
            return error_response(exc.kind, str(exc), 404)
        except MaintenanceError as exc:
            log.warning("%s rejected %s %s: %s", request.user, request.method, request.path, exc)
            return error_response(exc.kind, str(exc), 409)

    def bind(self, form_class, data):
        form = form_class(data)
        if not form.is_valid():
            raise ValidationError(form.errors)
        return form.cleaned_data


# Requests

class RequestListView(StoreViewMixin, View):
    def get(self, request):
        params = self.bind(RequestSearchForm, request.GET)
        requests = self.store.list_requests(
            search=params['search'],
            status=params['status'],
            priority=params['priority'],
        )
        return JsonResponse({'requests': [item.as_dict() for item in requests]})

    def post(self, request):
        params = self.bind(RequestCreateForm, request.POST)
        maintenance_request = self.store.create_request(request.user, **params)
        return JsonResponse(maintenance_request.as_dict(), status=201)


class RequestDetailView(StoreViewMixin, View):
    def get(self, request, reference):
        maintenance_request = self.store.get_request(reference)
        evaluation = warranty.evaluate(maintenance_request.asset, timezone.now())
        data = maintenance_request.as_dict()
        data['warranty'] = dict(evaluation.as_dict(), message=warranty.describe(evaluation))
        return JsonResponse(data)


class RequestAssignView(StoreViewMixin, View):
    def post(self, request, reference):
        params = self.bind(AssignForm, request.POST)
        maintenance_request = self.store.assign(
            request.user, reference, params['assignee_id'], params['kind'],
        )
        return JsonResponse(maintenance_request.as_dict())


class RequestStatusView(StoreViewMixin, View):
    def post(self, request, reference):
        params = self.bind(StatusUpdateForm, request.POST)
        maintenance_request = self.store.update_status(
            request.user,
            reference,
            params['status'],
            resolution=params['resolution'],
            cost=params['cost'],
        )
        return JsonResponse(maintenance_request.as_dict())


class RequestWarrantyView(StoreViewMixin, View):
    def post(self, request, reference):
        params = self.bind(WarrantyUsedForm, request.POST)
        maintenance_request = self.store.set_warranty_used(request.user, reference, params['used'])
        return JsonResponse(maintenance_request.as_dict())


class RequestAttachmentView(StoreViewMixin, View):
    def post(self, request, reference):
        params = self.bind(AttachmentForm, request.POST)
        attachments = self.store.add_attachment(request.user, reference, **params)
        return JsonResponse({'attachments': [item.as_dict() for item in attachments]}, status=201)


class RequestDeleteView(StoreViewMixin, View):
    def post(self, request, reference):
        self.store.delete_request(request.user, reference)
        return JsonResponse({'deleted': reference})


# Help desk overview

class SummaryView(StoreViewMixin, View):
    def get(self, request):
        return JsonResponse(self.store.summary())


class AvailableEmployeesView(StoreViewMixin, View):
    def get(self, request):
        employees = [
            {
                'id': employee.pk,
                'name': employee.name,
                'specializations': employee.specializations,
                'workload': employee.workload,
            }
            for employee in available_employees()
        ]
        return JsonResponse({'employees': employees})


# Dashboard

class MetricsView(StoreViewMixin, View):
    def get(self, request):
        params = self.bind(MetricsFilterForm, request.GET)
        filters = MetricsFilter.from_params(**params)
        return JsonResponse(self.store.query_metrics(filters).as_dict())
