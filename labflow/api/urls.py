# labflow/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from labflow.audit.api.views import AuditEventViewSet
from labflow.common.views import HealthView
from labflow.company.api.views import CompanySettingsView
from labflow.dashboard.api.views import (
    DashboardStatsView,
    MonthlyRevenueView,
    RecentVisitsView,
    RevenueBreakdownView,
)
from labflow.doctors.api.views import DoctorViewSet
from labflow.iam.api.auth import LoginView, LogoutView, RegisterView, UsersView, ValidateView
from labflow.lab.api.views import LabGroupViewSet, LabOrderViewSet, LabResultViewSet, LabTestViewSet
from labflow.patients.api.views import PatientViewSet
from labflow.reports.api.views import MedicalRecordSearchView, ReportDataView, ReportDepartmentsView
from labflow.visits.api.views import VisitViewSet

router = DefaultRouter()

router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"visits", VisitViewSet, basename="visits")
router.register(r"doctors", DoctorViewSet, basename="doctors")
router.register(r"lab/tests", LabTestViewSet, basename="lab-tests")
router.register(r"lab/groups", LabGroupViewSet, basename="lab-groups")
router.register(r"lab/orders", LabOrderViewSet, basename="lab-orders")
router.register(r"lab/results", LabResultViewSet, basename="lab-results")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    path("health/", HealthView.as_view(), name="health"),

    # Auth
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/validate/", ValidateView.as_view(), name="validate"),
    path("auth/users/", UsersView.as_view(), name="users"),

    path("company-settings/", CompanySettingsView.as_view(), name="company-settings"),

    path("dashboard/stats/", DashboardStatsView.as_view(), name="dashboard-stats"),
    path("dashboard/recent-visits/", RecentVisitsView.as_view(), name="dashboard-recent-visits"),
    path("dashboard/monthly-revenue/", MonthlyRevenueView.as_view(), name="dashboard-monthly-revenue"),
    path("dashboard/revenue-breakdown/", RevenueBreakdownView.as_view(), name="dashboard-revenue-breakdown"),

    path("reports/departments/", ReportDepartmentsView.as_view(), name="report-departments"),
    path("reports/data/", ReportDataView.as_view(), name="report-data"),
    path("medical-records/search/", MedicalRecordSearchView.as_view(), name="medical-records-search"),
]

urlpatterns += router.urls
