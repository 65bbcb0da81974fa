from django.contrib import admin
from registry.models import (
    Account,
    Admin,
    DigitalID,
    Household,
    RegistrationCode,
    RegistrationRequest,
    Resident,
    Staff,
)


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("username", "role", "created_at")
    list_filter = ("role",)
    search_fields = ("username",)
    readonly_fields = ("password", "created_at")


@admin.register(RegistrationRequest)
class RegistrationRequestAdmin(admin.ModelAdmin):
    list_display = ("reference_number", "first_name", "last_name", "role", "status", "submitted_at")
    list_filter = ("status", "role", "is_head_of_family")
    search_fields = ("reference_number", "first_name", "last_name", "email")
    # Decisions go through the approval workflow, not the admin site
    readonly_fields = (
        "status",
        "reference_number",
        "submitted_at",
        "approved_by",
        "approved_at",
        "rejected_by",
        "rejected_at",
        "rejection_reason",
        "account",
        "temp_password",
    )
    fieldsets = (
        (
            "Applicant",
            {"fields": ("first_name", "last_name", "email", "contact_no", "birthdate", "gender", "address")},
        ),
        (
            "Household",
            {"fields": ("role", "is_head_of_family", "head_id", "household_number", "registration_code")},
        ),
        (
            "Demographics",
            {
                "fields": (
                    "is_renter",
                    "is_4ps_member",
                    "is_pwd",
                    "is_indigenous",
                    "is_slp_beneficiary",
                    "is_senior",
                )
            },
        ),
        (
            "Decision",
            {
                "fields": (
                    "status",
                    "reference_number",
                    "submitted_at",
                    "approved_by",
                    "approved_at",
                    "rejected_by",
                    "rejected_at",
                    "rejection_reason",
                    "account",
                ),
            },
        ),
    )


@admin.register(Household)
class HouseholdAdmin(admin.ModelAdmin):
    list_display = ("id", "address", "head_resident", "head_staff", "created_at")
    search_fields = ("address",)


@admin.register(Resident, Staff)
class HouseholdMemberAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "household_number", "is_head_of_family", "created_at")
    list_filter = ("is_head_of_family", "is_4ps_member", "is_pwd", "senior_mode")
    search_fields = ("first_name", "last_name", "household_number")


@admin.register(Admin)
class AdminProfileAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "account", "created_at")


@admin.register(DigitalID)
class DigitalIDAdmin(admin.ModelAdmin):
    list_display = ("id_number", "resident", "staff", "issued_by", "issued_at")
    search_fields = ("id_number",)
    readonly_fields = ("payload", "qr_code", "issued_at")


@admin.register(RegistrationCode)
class RegistrationCodeAdmin(admin.ModelAdmin):
    list_display = ("code", "owner_name", "is_used", "used_by", "created_at")
    list_filter = ("is_used",)
    search_fields = ("code", "owner_name")
