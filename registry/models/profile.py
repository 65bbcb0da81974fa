from django.db import models

from .account import Account
from .household import Household


class HouseholdMember(models.Model):
    """Fields shared by the Resident and Staff profiles created on approval."""

    account = models.OneToOneField(
        Account, on_delete=models.CASCADE, related_name="%(class)s"
    )
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    contact_no = models.CharField(max_length=50, blank=True, default="")
    birthdate = models.DateField()
    gender = models.CharField(max_length=20, blank=True, default="")
    address = models.CharField(max_length=500, blank=True, default="")
    photo_url = models.TextField(blank=True, default="")

    is_head_of_family = models.BooleanField(default=False)
    head_id = models.BigIntegerField(
        blank=True, null=True, help_text="Profile id of the household head"
    )
    household = models.ForeignKey(
        Household,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="%(class)s_members",
    )
    household_number = models.CharField(max_length=50, blank=True, null=True, db_index=True)

    is_renter = models.BooleanField(default=False)
    is_4ps_member = models.BooleanField(default=False)
    is_pwd = models.BooleanField(default=False)
    is_indigenous = models.BooleanField(default=False)
    is_slp_beneficiary = models.BooleanField(default=False)
    senior_mode = models.BooleanField(default=False)

    issued_by = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="issued_%(class)s_profiles",
        help_text="Staff or admin account that approved this profile",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    def __str__(self):
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def memberships(self) -> list:
        """Human-readable program memberships printed on the digital ID."""
        labels = [
            (self.is_4ps_member, "Member of 4PS"),
            (self.is_pwd, "PWD"),
            (self.senior_mode, "Senior"),
            (self.is_slp_beneficiary, "SLP Beneficiary"),
            (self.is_renter, "Renter"),
        ]
        return [label for flag, label in labels if flag]


class Resident(HouseholdMember):
    class Meta:
        db_table = "residents"
        ordering = ["-created_at"]


class Staff(HouseholdMember):
    class Meta:
        db_table = "staff"
        ordering = ["-created_at"]
        verbose_name_plural = "Staff"


class Admin(models.Model):
    account = models.OneToOneField(Account, on_delete=models.CASCADE, related_name="admin")
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    contact_no = models.CharField(max_length=50, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "admins"

    def __str__(self):
        return f"{self.first_name} {self.last_name}"
