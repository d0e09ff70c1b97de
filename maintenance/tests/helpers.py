from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib.auth.models import Group, User

from maintenance.models import Asset, HelpDeskEmployee, Vendor


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


def make_user(username, role=None, superuser=False):
    if superuser:
        return User.objects.create_superuser(username=username, password='pass123')
    user = User.objects.create_user(username=username, password='pass123')
    if role:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user


def make_asset(serial='SN-001', warranty_days=None, **kwargs):
    defaults = {
        'name': 'Dell Latitude 5440',
        'category': 'laptop',
        'location': 'Floor 2',
        'branch': 'north',
    }
    defaults.update(kwargs)
    if warranty_days is not None:
        defaults['warranty'] = '3 year onsite'
        defaults['warranty_expiry'] = NOW + timedelta(days=warranty_days)
    return Asset.objects.create(serial_number=serial, **defaults)


def make_employee(name='Alex Morgan', available=True, workload=0):
    return HelpDeskEmployee.objects.create(
        name=name,
        email=f"{name.split()[0].lower()}@example.com",
        specializations=['hardware', 'network'],
        available=available,
        workload=workload,
    )


def make_vendor(name='FixIt Services'):
    return Vendor.objects.create(
        name=name,
        specializations=['hardware'],
        hourly_rate='85.00',
        response_time='4 hours',
        rating='4.5',
    )
