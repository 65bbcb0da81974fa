from django.db import models
from django.utils import timezone

from .account import Account
from .profile import Resident, Staff


class DigitalID(models.Model):
    """System-issued identity card for an approved resident or staff member."""

    resident = models.OneToOneField(
        Resident, on_delete=models.CASCADE, blank=True, null=True, related_name="digital_id"
    )
    staff = models.OneToOneField(
        Staff, on_delete=models.CASCADE, blank=True, null=True, related_name="digital_id"
    )
    id_number = models.CharField(max_length=50, unique=True)
    payload = models.TextField(help_text="JSON document encoded in the QR code")
    qr_code = models.TextField(help_text="QR code as a PNG data URL")
    issued_by = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="issued_digital_ids",
    )
    issued_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "digital_ids"
        ordering = ["-issued_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(resident__isnull=False, staff__isnull=True)
                    | models.Q(resident__isnull=True, staff__isnull=False)
                ),
                name="digital_id_single_holder",
            )
        ]

    def __str__(self):
        return self.id_number

    @property
    def holder(self):
        return self.resident or self.staff
