# whs_core/api/urls.py
from __future__ import annotations

from rest_framework.routers import DefaultRouter

from whs_core.cases.api.views import CaseViewSet
from whs_core.incidents.api.views import IncidentViewSet

router = DefaultRouter()

router.register(r"cases", CaseViewSet, basename="cases")
router.register(r"incidents", IncidentViewSet, basename="incidents")

urlpatterns = [
    *router.urls,
]
