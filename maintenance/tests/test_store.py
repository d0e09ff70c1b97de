import re
from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import PermissionDenied, ValidationError
from django.test import TestCase

from maintenance.exceptions import InvalidOperation, InvalidTransition, NotFound
from maintenance.models import (
    AssigneeKind,
    Attachment,
    MaintenanceRequest,
    Priority,
    RequestCategory,
    RequestHistory,
    RequestStatus,
)
from maintenance.store import RequestStore

from .helpers import NOW, make_asset, make_employee, make_user, make_vendor


class StoreTestCase(TestCase):
    def setUp(self):
        self.store = RequestStore()
        self.admin = make_user('admin_s', superuser=True)
        self.reporter = make_user('reporter_s')
        self.covered = make_asset('SN-100', warranty_days=120)
        self.uncovered = make_asset('SN-200', warranty_days=-30)
        self.employee = make_employee()

    def submit(self, asset=None, **kwargs):
        params = {
            'asset_id': (asset or self.covered).pk,
            'title': 'Screen flickers',
            'description': 'External monitor flickers when docked',
            'priority': Priority.HIGH,
            'category': RequestCategory.HARDWARE,
            'now': NOW,
        }
        params.update(kwargs)
        return self.store.create_request(self.reporter, **params)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

class CreateRequestTest(StoreTestCase):
    def test_new_request_is_pending(self):
        request = self.submit()
        self.assertEqual(request.status, RequestStatus.PENDING)
        self.assertEqual(request.submitted_by, self.reporter)
        self.assertEqual(request.submitted_at, NOW)
        self.assertEqual(request.assignee_type, '')
        self.assertIsNone(request.actual_completion)
        self.assertFalse(request.warranty_used)

    def test_reference_format(self):
        request = self.submit()
        self.assertRegex(request.reference, r'^MR-\d{3,}$')
        self.assertEqual(MaintenanceRequest.objects.get(reference=request.reference), request)

    def test_references_are_never_reused(self):
        """A deleted request's number is not handed out again"""
        first = self.submit()
        second = self.submit()
        self.store.delete_request(self.admin, second.reference)
        third = self.submit()

        numbers = [int(re.sub(r'\D', '', r.reference)) for r in (first, second, third)]
        self.assertLess(numbers[0], numbers[1])
        self.assertLess(numbers[1], numbers[2])

    def test_warranty_eligibility_from_asset(self):
        self.assertTrue(self.submit(self.covered).warranty_eligible)
        self.assertFalse(self.submit(self.uncovered).warranty_eligible)

    def test_warranty_eligibility_is_frozen(self):
        """Changing the asset's warranty later does not re-evaluate the request"""
        request = self.submit(self.covered)
        self.covered.warranty_expiry = NOW - timedelta(days=1)
        self.covered.save()

        request.refresh_from_db()
        self.assertTrue(request.warranty_eligible)

    def test_unknown_asset(self):
        with self.assertRaises(NotFound):
            self.submit(asset_id=9999)
        self.assertFalse(MaintenanceRequest.objects.exists())

    def test_missing_title_is_a_validation_error(self):
        with self.assertRaises(ValidationError) as ctx:
            self.submit(title='')
        self.assertIn('title', ctx.exception.message_dict)
        self.assertFalse(MaintenanceRequest.objects.exists())

    def test_invalid_priority_is_a_validation_error(self):
        with self.assertRaises(ValidationError):
            self.submit(priority='critical')

    def test_anonymous_actor_is_rejected(self):
        with self.assertRaises(PermissionDenied):
            self.store.create_request(
                None, asset_id=self.covered.pk, title='x', description='y', now=NOW,
            )

    def test_history_created(self):
        request = self.submit()
        self.assertTrue(
            RequestHistory.objects.filter(request=request, action=RequestHistory.ACTION_CREATED).exists()
        )


# ---------------------------------------------------------------------------
# Status updates
# ---------------------------------------------------------------------------

class UpdateStatusTest(StoreTestCase):
    def test_pending_cannot_be_completed_directly(self):
        """Completion requires an assignment first"""
        request = self.submit()

        with self.assertRaises(InvalidTransition):
            self.store.update_status(self.admin, request.reference, RequestStatus.COMPLETED, now=NOW)

        request.refresh_from_db()
        self.assertEqual(request.status, RequestStatus.PENDING)
        self.assertIsNone(request.actual_completion)

    def test_assigned_request_can_be_completed(self):
        request = self.submit()
        self.store.assign(self.admin, request.reference, self.employee.pk, AssigneeKind.HELPDESK, now=NOW)
        done_at = NOW + timedelta(hours=5)

        result = self.store.update_status(
            self.admin, request.reference, RequestStatus.COMPLETED,
            resolution='Replaced the dock', cost=Decimal('120.50'), now=done_at,
        )

        self.assertEqual(result.status, RequestStatus.COMPLETED)
        request.refresh_from_db()
        self.assertEqual(request.actual_completion, done_at)
        self.assertEqual(request.resolution, 'Replaced the dock')
        self.assertEqual(request.cost, Decimal('120.50'))

    def test_status_update_cannot_start_work(self):
        """in-progress is only reachable through assignment"""
        request = self.submit()
        with self.assertRaises(InvalidTransition):
            self.store.update_status(self.admin, request.reference, RequestStatus.IN_PROGRESS, now=NOW)

    def test_terminal_requests_stay_terminal(self):
        request = self.submit()
        self.store.update_status(self.admin, request.reference, RequestStatus.CANCELLED, now=NOW)

        for target in RequestStatus:
            with self.subTest(target=target), self.assertRaises(InvalidTransition):
                self.store.update_status(self.admin, request.reference, target, now=NOW)

        request.refresh_from_db()
        self.assertEqual(request.status, RequestStatus.CANCELLED)

    def test_completion_releases_workload(self):
        request = self.submit()
        self.store.assign(self.admin, request.reference, self.employee.pk, AssigneeKind.HELPDESK, now=NOW)
        self.store.update_status(self.admin, request.reference, RequestStatus.COMPLETED, now=NOW)

        self.employee.refresh_from_db()
        self.assertEqual(self.employee.workload, 0)

    def test_cancelling_in_progress_releases_workload(self):
        request = self.submit()
        self.store.assign(self.admin, request.reference, self.employee.pk, AssigneeKind.HELPDESK, now=NOW)
        self.store.update_status(self.admin, request.reference, RequestStatus.CANCELLED, now=NOW)

        self.employee.refresh_from_db()
        self.assertEqual(self.employee.workload, 0)

    def test_workload_matches_open_assignments(self):
        """Workload always equals the employee's in-progress requests"""
        requests = [self.submit() for _ in range(3)]
        for request in requests:
            self.store.assign(self.admin, request.reference, self.employee.pk, AssigneeKind.HELPDESK, now=NOW)
        self.store.update_status(self.admin, requests[0].reference, RequestStatus.COMPLETED, now=NOW)

        self.employee.refresh_from_db()
        open_count = MaintenanceRequest.objects.filter(
            helpdesk_assignee=self.employee, status=RequestStatus.IN_PROGRESS,
        ).count()
        self.assertEqual(self.employee.workload, open_count)
        self.assertEqual(open_count, 2)

    def test_only_admin_can_change_status(self):
        request = self.submit()
        dispatcher = make_user('dispatcher_s', role='dispatcher')
        for actor in (self.reporter, dispatcher):
            with self.subTest(actor=actor.username), self.assertRaises(PermissionDenied):
                self.store.update_status(actor, request.reference, RequestStatus.CANCELLED, now=NOW)

    def test_unknown_status_is_a_validation_error(self):
        request = self.submit()
        with self.assertRaises(ValidationError):
            self.store.update_status(self.admin, request.reference, 'archived', now=NOW)

    def test_unknown_request(self):
        with self.assertRaises(NotFound):
            self.store.update_status(self.admin, 'MR-404', RequestStatus.CANCELLED, now=NOW)


# ---------------------------------------------------------------------------
# Warranty usage
# ---------------------------------------------------------------------------

class WarrantyUsedTest(StoreTestCase):
    def test_eligible_request_can_use_warranty(self):
        request = self.submit(self.covered)
        result = self.store.set_warranty_used(self.admin, request.reference, True, now=NOW)
        self.assertTrue(result.warranty_used)
        request.refresh_from_db()
        self.assertTrue(request.warranty_used)

    def test_ineligible_request_cannot_use_warranty(self):
        request = self.submit(self.uncovered)
        with self.assertRaises(InvalidOperation):
            self.store.set_warranty_used(self.admin, request.reference, True, now=NOW)
        request.refresh_from_db()
        self.assertFalse(request.warranty_used)

    def test_clearing_is_always_allowed(self):
        request = self.submit(self.uncovered)
        result = self.store.set_warranty_used(self.admin, request.reference, False, now=NOW)
        self.assertFalse(result.warranty_used)

    def test_only_admin_can_mark_warranty(self):
        request = self.submit(self.covered)
        with self.assertRaises(PermissionDenied):
            self.store.set_warranty_used(self.reporter, request.reference, True, now=NOW)


# ---------------------------------------------------------------------------
# Attachments and deletion
# ---------------------------------------------------------------------------

class AttachmentTest(StoreTestCase):
    def test_attachments_are_appended_in_order(self):
        request = self.submit()
        self.store.add_attachment(
            self.reporter, request.reference,
            file_name='photo.jpg', file_size=204800, file_ref='uploads/photo.jpg', now=NOW,
        )
        attachments = self.store.add_attachment(
            self.reporter, request.reference,
            file_name='invoice.pdf', file_size=51200, file_ref='uploads/invoice.pdf',
            now=NOW + timedelta(minutes=5),
        )

        self.assertEqual([a.file_name for a in attachments], ['photo.jpg', 'invoice.pdf'])
        self.assertEqual(attachments[0].file_size, 204800)
        self.assertEqual(attachments[1].uploaded_at, NOW + timedelta(minutes=5))

    def test_attachment_on_unknown_request(self):
        with self.assertRaises(NotFound):
            self.store.add_attachment(
                self.reporter, 'MR-404', file_name='a.txt', file_size=1, file_ref='a.txt', now=NOW,
            )
        self.assertFalse(Attachment.objects.exists())


class DeleteRequestTest(StoreTestCase):
    def test_delete_removes_request_and_attachments(self):
        request = self.submit()
        self.store.add_attachment(
            self.reporter, request.reference,
            file_name='photo.jpg', file_size=10, file_ref='uploads/photo.jpg', now=NOW,
        )
        self.store.delete_request(self.admin, request.reference)

        self.assertFalse(MaintenanceRequest.objects.filter(pk=request.pk).exists())
        self.assertFalse(Attachment.objects.exists())
        with self.assertRaises(NotFound):
            self.store.get_request(request.reference)

    def test_deleting_in_progress_request_releases_workload(self):
        request = self.submit()
        self.store.assign(self.admin, request.reference, self.employee.pk, AssigneeKind.HELPDESK, now=NOW)
        self.store.delete_request(self.admin, request.reference)

        self.employee.refresh_from_db()
        self.assertEqual(self.employee.workload, 0)

    def test_only_admin_can_delete(self):
        request = self.submit()
        with self.assertRaises(PermissionDenied):
            self.store.delete_request(self.reporter, request.reference)
        self.assertTrue(MaintenanceRequest.objects.filter(pk=request.pk).exists())


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

class QueryTest(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.printer = self.submit(title='Printer jams', description='Tray 2 jams', priority=Priority.LOW)
        self.vpn = self.submit(
            title='VPN drops', description='Disconnects hourly',
            priority=Priority.URGENT, category=RequestCategory.NETWORK,
        )
        self.store.assign(self.admin, self.vpn.reference, make_vendor().pk, AssigneeKind.VENDOR, now=NOW)

    def test_search_matches_title_and_description(self):
        self.assertEqual(list(self.store.list_requests(search='printer')), [self.printer])
        self.assertEqual(list(self.store.list_requests(search='hourly')), [self.vpn])

    def test_filters_by_status_and_priority(self):
        self.assertEqual(list(self.store.list_requests(status=RequestStatus.IN_PROGRESS)), [self.vpn])
        self.assertEqual(list(self.store.list_requests(priority=Priority.LOW)), [self.printer])
        self.assertEqual(self.store.list_requests(status='all', priority='all').count(), 2)

    def test_summary(self):
        self.store.set_warranty_used(self.admin, self.printer.reference, True, now=NOW)
        self.assertEqual(self.store.summary(), {
            'total': 2,
            'pending': 1,
            'in_progress': 1,
            'completed': 0,
            'cancelled': 0,
            'warranty_eligible': 2,
        })

    def test_query_metrics_reads_current_state(self):
        metrics = self.store.query_metrics(now=NOW)
        self.assertEqual(metrics.status_counts['pending'], 1)
        self.assertEqual(metrics.status_counts['in-progress'], 1)
        self.assertEqual(metrics.lifecycle_funnel['in_maintenance'], 1)
        self.assertEqual(metrics.lifecycle_funnel['active'], 1)
