# whs_core/cases/api/filters.py
import django_filters

from whs_core.cases.models import Case


class CaseFilter(django_filters.FilterSet):
    """
    Column filters only. `status` is handled by the view because the
    canonical value is derived, not stored.
    """
    subject_id = django_filters.UUIDFilter()
    team_id = django_filters.UUIDFilter()
    kind = django_filters.CharFilter(lookup_expr="iexact")
    is_active = django_filters.BooleanFilter()
    opened_after = django_filters.DateFilter(field_name="opened_on", lookup_expr="gte")
    opened_before = django_filters.DateFilter(field_name="opened_on", lookup_expr="lte")

    class Meta:
        model = Case
        fields = ["subject_id", "team_id", "kind", "is_active"]
