import django_filters

from .models import Project


class OpenProjectFilter(django_filters.FilterSet):
    min_budget = django_filters.NumberFilter(field_name='budget', lookup_expr='gte')
    max_budget = django_filters.NumberFilter(field_name='budget', lookup_expr='lte')
    deadline_before = django_filters.IsoDateTimeFilter(field_name='deadline', lookup_expr='lte')

    class Meta:
        model = Project
        fields = ['budget_currency', 'min_budget', 'max_budget', 'deadline_before']
