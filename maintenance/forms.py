from django import forms

from .metrics import ALL
from .models import AssigneeKind, Priority, RequestCategory, RequestStatus


def _with_all(choices):
    return [(ALL, 'All')] + list(choices)


class RequestCreateForm(forms.Form):
    asset_id = forms.IntegerField(min_value=1)
    title = forms.CharField(max_length=255)
    description = forms.CharField(widget=forms.Textarea)
    priority = forms.ChoiceField(choices=Priority.choices, initial=Priority.MEDIUM)
    category = forms.ChoiceField(choices=RequestCategory.choices, initial=RequestCategory.HARDWARE)
    notes = forms.CharField(required=False, widget=forms.Textarea)
    estimated_completion = forms.DateTimeField(required=False)


class AssignForm(forms.Form):
    assignee_id = forms.IntegerField(min_value=1)
    kind = forms.ChoiceField(choices=AssigneeKind.choices)


class StatusUpdateForm(forms.Form):
    status = forms.ChoiceField(choices=RequestStatus.choices)
    resolution = forms.CharField(required=False, widget=forms.Textarea)
    cost = forms.DecimalField(required=False, min_value=0, max_digits=10, decimal_places=2)

    def clean_resolution(self):
        # An empty field leaves the stored resolution alone.
        return self.cleaned_data['resolution'] or None


class WarrantyUsedForm(forms.Form):
    used = forms.BooleanField(required=False)


class AttachmentForm(forms.Form):
    file_name = forms.CharField(max_length=255)
    file_size = forms.IntegerField(min_value=0)
    file_ref = forms.CharField(max_length=500)


class RequestSearchForm(forms.Form):
    search = forms.CharField(required=False)
    status = forms.ChoiceField(choices=_with_all(RequestStatus.choices), required=False)
    priority = forms.ChoiceField(choices=_with_all(Priority.choices), required=False)


class MetricsFilterForm(forms.Form):
    """Dashboard filter bar; asset categories and branches are free-form."""

    category = forms.CharField(required=False)
    branch = forms.CharField(required=False)
    status = forms.ChoiceField(choices=_with_all(RequestStatus.choices), required=False)
