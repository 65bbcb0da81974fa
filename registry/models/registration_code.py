from django.db import models

from .account import Account


class RegistrationCode(models.Model):
    """One-time code an admin issues to a prospective head of family."""

    code = models.CharField(max_length=20, unique=True)
    owner_name = models.CharField(max_length=300, help_text="Full name of the intended registrant")
    is_used = models.BooleanField(default=False)
    used_by = models.ForeignKey(
        "registry.Resident",
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="registration_codes",
    )
    created_by = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="created_registration_codes",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "registration_codes"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.code} ({self.owner_name})"

    def belongs_to(self, first_name: str, last_name: str) -> bool:
        return self.owner_name.strip().lower() == f"{first_name} {last_name}".strip().lower()
