import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Asset',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('category', models.CharField(max_length=100)),
                ('location', models.CharField(blank=True, max_length=200)),
                ('branch', models.CharField(db_index=True, max_length=100)),
                ('serial_number', models.CharField(max_length=100, unique=True)),
                ('warranty', models.CharField(blank=True, max_length=255)),
                ('warranty_expiry', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('in_use', 'In use'), ('in_repair', 'In repair'), ('storage', 'In storage'), ('retired', 'Retired')], default='in_use', max_length=20)),
                ('owned_since', models.DateTimeField(blank=True, null=True)),
                ('owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='owned_assets', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='HelpDeskEmployee',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('phone', models.CharField(blank=True, max_length=50)),
                ('specializations', models.JSONField(blank=True, default=list)),
                ('available', models.BooleanField(default=True)),
                ('workload', models.PositiveIntegerField(default=0)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Vendor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('phone', models.CharField(blank=True, max_length=50)),
                ('specializations', models.JSONField(blank=True, default=list)),
                ('hourly_rate', models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ('response_time', models.CharField(blank=True, max_length=100)),
                ('rating', models.DecimalField(decimal_places=1, default=0, max_digits=2, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(5)])),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='OwnershipChange',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('changed_at', models.DateTimeField()),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ownership_changes', to='maintenance.asset')),
                ('new_owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('previous_owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-changed_at'],
            },
        ),
        migrations.CreateModel(
            name='MaintenanceRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reference', models.CharField(blank=True, editable=False, max_length=20, null=True, unique=True)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField()),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('urgent', 'Urgent')], default='medium', max_length=10)),
                ('category', models.CharField(choices=[('hardware', 'Hardware'), ('software', 'Software'), ('network', 'Network'), ('other', 'Other')], default='hardware', max_length=10)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('in-progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('submitted_at', models.DateTimeField()),
                ('assignee_type', models.CharField(blank=True, choices=[('helpdesk', 'Help desk'), ('vendor', 'Vendor')], max_length=10)),
                ('estimated_completion', models.DateTimeField(blank=True, null=True)),
                ('actual_completion', models.DateTimeField(blank=True, null=True)),
                ('cost', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('resolution', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('warranty_eligible', models.BooleanField(default=False)),
                ('warranty_used', models.BooleanField(default=False)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='maintenance_requests', to='maintenance.asset')),
                ('helpdesk_assignee', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='assigned_requests', to='maintenance.helpdeskemployee')),
                ('submitted_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='maintenance_requests', to=settings.AUTH_USER_MODEL)),
                ('vendor_assignee', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='assigned_requests', to='maintenance.vendor')),
            ],
            options={
                'ordering': ['-submitted_at', '-pk'],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('assignee_type', ''), ('helpdesk_assignee__isnull', True), ('vendor_assignee__isnull', True)),
                            models.Q(('assignee_type', 'helpdesk'), ('helpdesk_assignee__isnull', False), ('vendor_assignee__isnull', True)),
                            models.Q(('assignee_type', 'vendor'), ('helpdesk_assignee__isnull', True), ('vendor_assignee__isnull', False)),
                            _connector='OR',
                        ),
                        name='maintenance_request_assignee_pair',
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('actual_completion__isnull', False), ('status', 'completed')),
                            models.Q(models.Q(('status', 'completed'), _negated=True), ('actual_completion__isnull', True)),
                            _connector='OR',
                        ),
                        name='maintenance_request_completion_stamp',
                    ),
                    models.CheckConstraint(
                        condition=models.Q(('warranty_used', False), ('warranty_eligible', True), _connector='OR'),
                        name='maintenance_request_warranty_used_eligible',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='Attachment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file_name', models.CharField(max_length=255)),
                ('file_ref', models.CharField(max_length=500)),
                ('file_size', models.PositiveBigIntegerField()),
                ('uploaded_at', models.DateTimeField()),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attachments', to='maintenance.maintenancerequest')),
            ],
            options={
                'ordering': ['uploaded_at', 'pk'],
            },
        ),
        migrations.CreateModel(
            name='RequestHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('created', 'Created'), ('assigned', 'Assigned'), ('status_changed', 'Status changed'), ('attachment_added', 'Attachment added'), ('warranty_updated', 'Warranty usage updated')], max_length=20)),
                ('comment', models.CharField(blank=True, max_length=255)),
                ('timestamp', models.DateTimeField()),
                ('changed_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='history', to='maintenance.maintenancerequest')),
            ],
            options={
                'verbose_name_plural': 'request history',
                'ordering': ['timestamp', 'pk'],
            },
        ),
    ]
