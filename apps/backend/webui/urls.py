from django.contrib.auth import views as auth_views
from django.urls import path

from . import views

app_name = "webui"

urlpatterns = [
    path("", views.dashboard, name="dashboard"),
    path("organization/", views.organization_profile, name="organization"),
    path("context/", views.context_page, name="context"),
    path("context/issues/export/", views.issue_export_csv, name="issue-export"),
    path("context/issues/import/", views.issue_import_csv, name="issue-import"),
    path("context/issues/new/", views.issue_wizard_start, name="issue-new"),
    path("context/issues/<int:issue_id>/edit/", views.issue_wizard_start, name="issue-edit"),
    path("context/issues/wizard/", views.issue_wizard, name="issue-wizard"),
    path("context/stakeholders/new/", views.stakeholder_form, name="stakeholder-new"),
    path("context/stakeholders/<int:stakeholder_id>/edit/", views.stakeholder_form, name="stakeholder-edit"),
    path("settings/<str:section>/", views.settings_page, name="settings"),
    path("audit-log/", views.audit_log, name="audit-log"),
    path("login/", auth_views.LoginView.as_view(template_name="registration/login.html"), name="login"),
    path("logout/", auth_views.LogoutView.as_view(next_page="webui:login"), name="logout"),
]
