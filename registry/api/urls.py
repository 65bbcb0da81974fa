from django.urls import path
from registry.api.views import (
    AdminRegistrationDecisionView,
    AdminRegistrationRequestListView,
    ChangePasswordView,
    DigitalIDView,
    LoginView,
    RegisterAdminView,
    RegistrationCodeDetailView,
    RegistrationCodeListView,
    RegistrationDecisionView,
    RegistrationRequestListView,
    RegistrationRequestView,
    ResetPasswordView,
)

urlpatterns = [
    # Applicant endpoints
    path("registration-requests/", RegistrationRequestView.as_view(), name="registration-requests"),
    # Review endpoints
    path(
        "staff/registration-requests/",
        RegistrationRequestListView.as_view(),
        name="staff-registration-requests",
    ),
    path(
        "staff/registration-decisions/",
        RegistrationDecisionView.as_view(),
        name="staff-registration-decisions",
    ),
    path(
        "admin/registration-requests/",
        AdminRegistrationRequestListView.as_view(),
        name="admin-registration-requests",
    ),
    path(
        "admin/registration-decisions/",
        AdminRegistrationDecisionView.as_view(),
        name="admin-registration-decisions",
    ),
    path("admin/registration-codes/", RegistrationCodeListView.as_view(), name="registration-codes"),
    path(
        "admin/registration-codes/<int:code_id>/",
        RegistrationCodeDetailView.as_view(),
        name="registration-code-detail",
    ),
    # Authentication endpoints
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/change-password/", ChangePasswordView.as_view(), name="change-password"),
    path("auth/reset-password/", ResetPasswordView.as_view(), name="reset-password"),
    path("auth/register-admin/", RegisterAdminView.as_view(), name="register-admin"),
    # Resident dashboard
    path("dash/digital-id/", DigitalIDView.as_view(), name="digital-id"),
]
