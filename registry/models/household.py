from django.db import models


class Household(models.Model):
    """A dwelling/family unit anchored by its head of family."""

    address = models.CharField(max_length=500)
    head_resident = models.ForeignKey(
        "registry.Resident",
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="headed_households",
        help_text="Resident registered as head of this household",
    )
    head_staff = models.ForeignKey(
        "registry.Staff",
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="headed_households",
        help_text="Staff member registered as head of this household",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "households"
        ordering = ["id"]

    def __str__(self):
        return f"Household {self.household_number} - {self.address}"

    @property
    def household_number(self) -> str:
        """Shareable household number, derived from the primary key."""
        return str(self.pk)

    @property
    def head(self):
        return self.head_resident or self.head_staff
