from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q


REFERENCE_PREFIX = 'MR-'


def format_reference(pk):
    return f"{REFERENCE_PREFIX}{pk:03d}"


class Priority(models.TextChoices):
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'
    URGENT = 'urgent', 'Urgent'


class RequestCategory(models.TextChoices):
    HARDWARE = 'hardware', 'Hardware'
    SOFTWARE = 'software', 'Software'
    NETWORK = 'network', 'Network'
    OTHER = 'other', 'Other'


class RequestStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in-progress', 'In progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class AssigneeKind(models.TextChoices):
    HELPDESK = 'helpdesk', 'Help desk'
    VENDOR = 'vendor', 'Vendor'


class AssetStatus(models.TextChoices):
    IN_USE = 'in_use', 'In use'
    IN_REPAIR = 'in_repair', 'In repair'
    STORAGE = 'storage', 'In storage'
    RETIRED = 'retired', 'Retired'


class Asset(models.Model):
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=100)
    location = models.CharField(max_length=200, blank=True)
    branch = models.CharField(max_length=100, db_index=True)
    serial_number = models.CharField(max_length=100, unique=True)
    warranty = models.CharField(max_length=255, blank=True)
    warranty_expiry = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=AssetStatus.choices,
        default=AssetStatus.IN_USE,
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name='owned_assets',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    owned_since = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.serial_number})"


class OwnershipChange(models.Model):
    """A hand-over of an asset, recorded by the asset management flows."""

    asset = models.ForeignKey(Asset, related_name='ownership_changes', on_delete=models.CASCADE)
    previous_owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name='+',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    new_owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name='+',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    changed_at = models.DateTimeField()

    class Meta:
        ordering = ['-changed_at']

    def __str__(self):
        return f"{self.asset} @ {self.changed_at:%Y-%m-%d}"


class HelpDeskEmployee(models.Model):
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    specializations = models.JSONField(default=list, blank=True)
    available = models.BooleanField(default=True)
    workload = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Vendor(models.Model):
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    specializations = models.JSONField(default=list, blank=True)
    hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    response_time = models.CharField(max_length=100, blank=True)
    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} (${self.hourly_rate}/hr)"


class MaintenanceRequest(models.Model):
    TERMINAL_STATUSES = (RequestStatus.COMPLETED, RequestStatus.CANCELLED)

    reference = models.CharField(max_length=20, unique=True, null=True, blank=True, editable=False)
    asset = models.ForeignKey(Asset, related_name='maintenance_requests', on_delete=models.PROTECT)
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name='maintenance_requests',
        on_delete=models.SET_NULL,
        null=True,
    )
    title = models.CharField(max_length=255)
    description = models.TextField()
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    category = models.CharField(max_length=10, choices=RequestCategory.choices, default=RequestCategory.HARDWARE)
    status = models.CharField(max_length=20, choices=RequestStatus.choices, default=RequestStatus.PENDING)
    submitted_at = models.DateTimeField()

    assignee_type = models.CharField(max_length=10, choices=AssigneeKind.choices, blank=True)
    helpdesk_assignee = models.ForeignKey(
        HelpDeskEmployee,
        related_name='assigned_requests',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
    )
    vendor_assignee = models.ForeignKey(
        Vendor,
        related_name='assigned_requests',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
    )

    estimated_completion = models.DateTimeField(null=True, blank=True)
    actual_completion = models.DateTimeField(null=True, blank=True)
    cost = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    resolution = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    warranty_eligible = models.BooleanField(default=False)
    warranty_used = models.BooleanField(default=False)

    class Meta:
        ordering = ['-submitted_at', '-pk']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(assignee_type='', helpdesk_assignee__isnull=True, vendor_assignee__isnull=True)
                    | Q(assignee_type=AssigneeKind.HELPDESK, helpdesk_assignee__isnull=False, vendor_assignee__isnull=True)
                    | Q(assignee_type=AssigneeKind.VENDOR, vendor_assignee__isnull=False, helpdesk_assignee__isnull=True)
                ),
                name='maintenance_request_assignee_pair',
            ),
            models.CheckConstraint(
                condition=(
                    Q(status=RequestStatus.COMPLETED, actual_completion__isnull=False)
                    | (~Q(status=RequestStatus.COMPLETED) & Q(actual_completion__isnull=True))
                ),
                name='maintenance_request_completion_stamp',
            ),
            models.CheckConstraint(
                condition=Q(warranty_used=False) | Q(warranty_eligible=True),
                name='maintenance_request_warranty_used_eligible',
            ),
        ]

    def __str__(self):
        return f"{self.title} {self.reference or '#' + str(self.pk)}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def assigned_to(self):
        """The employee or vendor the request is routed to, if any."""
        if self.assignee_type == AssigneeKind.HELPDESK:
            return self.helpdesk_assignee
        if self.assignee_type == AssigneeKind.VENDOR:
            return self.vendor_assignee
        return None

    def as_dict(self):
        assignee = self.assigned_to
        return {
            'id': self.reference,
            'asset_id': self.asset_id,
            'user_id': self.submitted_by_id,
            'title': self.title,
            'description': self.description,
            'priority': self.priority,
            'category': self.category,
            'status': self.status,
            'submitted_at': self.submitted_at.isoformat(),
            'assigned_to': assignee.pk if assignee is not None else None,
            'assigned_type': self.assignee_type or None,
            'estimated_completion': _isoformat(self.estimated_completion),
            'actual_completion': _isoformat(self.actual_completion),
            'cost': str(self.cost) if self.cost is not None else None,
            'resolution': self.resolution,
            'notes': self.notes,
            'attachments': [attachment.as_dict() for attachment in self.attachments.all()],
            'warranty_eligible': self.warranty_eligible,
            'warranty_used': self.warranty_used,
        }


class Attachment(models.Model):
    request = models.ForeignKey(MaintenanceRequest, related_name='attachments', on_delete=models.CASCADE)
    file_name = models.CharField(max_length=255)
    file_ref = models.CharField(max_length=500)
    file_size = models.PositiveBigIntegerField()
    uploaded_at = models.DateTimeField()

    class Meta:
        ordering = ['uploaded_at', 'pk']

    def __str__(self):
        return self.file_name

    def as_dict(self):
        return {
            'id': self.pk,
            'file_name': self.file_name,
            'file_ref': self.file_ref,
            'file_size': self.file_size,
            'uploaded_at': self.uploaded_at.isoformat(),
        }


class RequestHistory(models.Model):
    ACTION_CREATED = 'created'
    ACTION_ASSIGNED = 'assigned'
    ACTION_STATUS_CHANGED = 'status_changed'
    ACTION_ATTACHMENT_ADDED = 'attachment_added'
    ACTION_WARRANTY_UPDATED = 'warranty_updated'

    ACTION_CHOICES = [
        (ACTION_CREATED, 'Created'),
        (ACTION_ASSIGNED, 'Assigned'),
        (ACTION_STATUS_CHANGED, 'Status changed'),
        (ACTION_ATTACHMENT_ADDED, 'Attachment added'),
        (ACTION_WARRANTY_UPDATED, 'Warranty usage updated'),
    ]

    request = models.ForeignKey(MaintenanceRequest, related_name='history', on_delete=models.CASCADE)
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name='+',
        on_delete=models.SET_NULL,
        null=True,
    )
    comment = models.CharField(max_length=255, blank=True)
    timestamp = models.DateTimeField()

    class Meta:
        ordering = ['timestamp', 'pk']
        verbose_name_plural = 'request history'

    def __str__(self):
        return f"{self.request} {self.get_action_display()}"


def _isoformat(value):
    return value.isoformat() if value is not None else None
