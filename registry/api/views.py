from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from registry.api.permissions import IsAdmin, IsAuthenticatedAccount, IsResidentOrStaff, IsStaffOrAdmin
from registry.api.serializers import (
    AdminRegistrationSerializer,
    ChangePasswordSerializer,
    DecisionSerializer,
    LoginSerializer,
    RegistrationCodeSerializer,
    RegistrationRequestSerializer,
    RegistrationSubmitSerializer,
    ResetPasswordSerializer,
)
from registry.services.account_service import AccountService
from registry.services.approval_service import ApprovalService
from registry.services.digital_id_service import DigitalIDService
from registry.services.registration_code_service import RegistrationCodeService
from registry.services.registration_service import RegistrationService


class RegistrationRequestView(APIView):
    """
    Applicant intake and status lookup.

    POST /api/v1/registration-requests/

    Request body:
    {
        "first_name": "Ana",
        "last_name": "Cruz",
        "contact_no": "09171234567",
        "birthdate": "1990-01-01",
        "email": null,
        "is_head_of_family": true,
        "registration_code": "RC-123456"
    }

    GET /api/v1/registration-requests/?ref=REF-20261017-1234
    """

    permission_classes = [AllowAny]

    def post(self, request):
        """Submit a registration request."""
        serializer = RegistrationSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        registration = RegistrationService().submit(serializer.validated_data)
        return Response(
            {
                "message": "Registration request submitted",
                "referenceNumber": registration.reference_number,
                "request": RegistrationRequestSerializer(registration).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def get(self, request):
        """Look up a request's status by reference number."""
        result = RegistrationService().lookup(request.query_params.get("ref"))
        return Response({"message": "Status retrieved", "request": result}, status=status.HTTP_200_OK)


class RegistrationRequestListView(APIView):
    """
    Registration requests for review, newest first.

    GET /api/v1/staff/registration-requests/?status=PENDING

    Staff see RESIDENT requests only; admins see all roles.
    """

    permission_classes = [IsStaffOrAdmin]

    def get(self, request):
        requests = RegistrationService().list_for_reviewer(
            request.user, status=request.query_params.get("status")
        )
        data = RegistrationRequestSerializer(requests, many=True).data
        return Response({"requests": data, "count": len(data)}, status=status.HTTP_200_OK)


class AdminRegistrationRequestListView(RegistrationRequestListView):
    """GET /api/v1/admin/registration-requests/"""

    permission_classes = [IsAdmin]


class RegistrationDecisionView(APIView):
    """
    Approve or reject a registration request.

    POST /api/v1/staff/registration-decisions/

    Request body:
    {
        "request_id": 12,
        "approve": false,
        "reason": "Incomplete address"
    }

    Staff may only decide RESIDENT requests and must give a reason when rejecting.
    """

    permission_classes = [IsStaffOrAdmin]
    require_reason = True

    def post(self, request):
        serializer = DecisionSerializer(
            data=request.data, context={"require_reason": self.require_reason}
        )
        serializer.is_valid(raise_exception=True)

        outcome = ApprovalService().decide(
            serializer.validated_data["request_id"], request.user, serializer.to_decision()
        )
        if outcome.approved:
            message = "Registration approved successfully"
        else:
            message = "Registration rejected successfully"

        body = {"message": message, **outcome.as_dict()}
        # Field names used by the portal front-end
        body["userId"] = outcome.account_id
        body["residentId"] = outcome.resident_id
        body["staffId"] = outcome.staff_id
        return Response(body, status=status.HTTP_200_OK)


class AdminRegistrationDecisionView(RegistrationDecisionView):
    """
    POST /api/v1/admin/registration-decisions/

    Admins may decide requests of any role; the rejection reason is optional.
    """

    permission_classes = [IsAdmin]
    require_reason = False


class LoginView(APIView):
    """
    POST /api/v1/auth/login/

    Request body: {"username": "...", "password": "..."}

    Response: {"message", "token", "user": {"id", "role", ...}, "redirectUrl"}
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AccountService().login(**serializer.validated_data)
        return Response({"message": "Login successful", **result}, status=status.HTTP_200_OK)


class ChangePasswordView(APIView):
    """POST /api/v1/auth/change-password/ with {"current_password", "new_password"}."""

    permission_classes = [IsAuthenticatedAccount]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AccountService().change_password(request.user, **serializer.validated_data)
        return Response({"message": "Password changed successfully"}, status=status.HTTP_200_OK)


class ResetPasswordView(APIView):
    """
    POST /api/v1/auth/reset-password/

    Request body:
    {
        "username": "ana@example.com",
        "household_number": "12",
        "new_password": "new-secret"
    }
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AccountService().reset_password(**serializer.validated_data)
        return Response(
            {"message": "Password reset successfully. You can now login with your new password."},
            status=status.HTTP_200_OK,
        )


class RegisterAdminView(APIView):
    """
    POST /api/v1/auth/register-admin/

    Requires the ``X-Admin-Secret`` header to match ADMIN_REGISTER_KEY.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = AdminRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        admin = AccountService().register_admin(
            serializer.validated_data, request.headers.get("X-Admin-Secret")
        )
        return Response(
            {
                "message": "Admin account created successfully",
                "user": {"id": admin.account_id, "username": admin.account.username, "role": admin.account.role},
                "admin": {"id": admin.pk, "first_name": admin.first_name, "last_name": admin.last_name},
            },
            status=status.HTTP_201_CREATED,
        )


class RegistrationCodeListView(APIView):
    """
    GET  /api/v1/admin/registration-codes/
    POST /api/v1/admin/registration-codes/  with {"owner_name": "Ana Cruz"}
    """

    permission_classes = [IsAdmin]

    def get(self, request):
        codes = RegistrationCodeService().list_codes()
        return Response(
            {"codes": RegistrationCodeSerializer(codes, many=True).data}, status=status.HTTP_200_OK
        )

    def post(self, request):
        serializer = RegistrationCodeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        code = RegistrationCodeService().create_code(
            serializer.validated_data["owner_name"], request.user
        )
        return Response(
            {"code": RegistrationCodeSerializer(code).data}, status=status.HTTP_201_CREATED
        )


class RegistrationCodeDetailView(APIView):
    """DELETE /api/v1/admin/registration-codes/{code_id}/ (unused codes only)."""

    permission_classes = [IsAdmin]

    def delete(self, request, code_id):
        RegistrationCodeService().delete_code(code_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DigitalIDView(APIView):
    """
    GET /api/v1/dash/digital-id/

    The authenticated resident's (or staff member's) digital ID card.
    """

    permission_classes = [IsResidentOrStaff]

    def get(self, request):
        card = DigitalIDService().get_card(request.user)
        return Response(card, status=status.HTTP_200_OK)
