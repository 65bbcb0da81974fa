from django.db import models

from .account import Account


class RegistrationRequest(models.Model):
    """
    An applicant's intake record.

    Created PENDING on submission and moved exactly once to APPROVED or
    REJECTED by a staff or admin account. After the decision the record is
    kept unchanged as an audit trail.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (APPROVED, "Approved"),
        (REJECTED, "Rejected"),
    ]

    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    email = models.EmailField(blank=True, null=True, db_index=True)
    contact_no = models.CharField(max_length=50)
    birthdate = models.DateField()
    gender = models.CharField(max_length=20, blank=True, null=True)
    address = models.CharField(max_length=500, blank=True, null=True)
    photo_url = models.TextField(blank=True, null=True)
    role = models.CharField(
        max_length=20, choices=Account.ROLE_CHOICES, default=Account.RESIDENT, db_index=True
    )

    is_head_of_family = models.BooleanField(default=False)
    head_id = models.BigIntegerField(
        blank=True, null=True, help_text="Resident id of the applicant's household head"
    )
    household_number = models.CharField(max_length=50, blank=True, null=True)
    registration_code = models.ForeignKey(
        "registry.RegistrationCode",
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="registration_requests",
        help_text="Code presented by a head-of-family applicant",
    )

    is_renter = models.BooleanField(default=False)
    is_4ps_member = models.BooleanField(default=False)
    is_pwd = models.BooleanField(default=False)
    is_indigenous = models.BooleanField(default=False)
    is_slp_beneficiary = models.BooleanField(default=False)
    is_senior = models.BooleanField(default=False, help_text="Computed from birthdate on submission")

    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=PENDING, db_index=True
    )
    reference_number = models.CharField(max_length=32, unique=True)
    submitted_at = models.DateTimeField(auto_now_add=True)

    approved_by = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="approved_requests",
    )
    approved_at = models.DateTimeField(blank=True, null=True)
    rejected_by = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="rejected_requests",
    )
    rejected_at = models.DateTimeField(blank=True, null=True)
    rejection_reason = models.TextField(blank=True, null=True)

    account = models.OneToOneField(
        Account,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="registration_request",
        help_text="Account provisioned when the request was approved",
    )
    temp_password = models.CharField(
        max_length=64,
        blank=True,
        null=True,
        help_text="Temporary password kept only for applicants without email",
    )

    class Meta:
        db_table = "registration_requests"
        ordering = ["-submitted_at"]
        indexes = [
            models.Index(fields=["status", "submitted_at"]),
            models.Index(fields=["role", "status"]),
        ]

    def __str__(self):
        return f"{self.full_name} - {self.reference_number} ({self.status})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_pending(self) -> bool:
        return self.status == self.PENDING
