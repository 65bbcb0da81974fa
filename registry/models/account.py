from django.contrib.auth.hashers import check_password, make_password
from django.db import models


class Account(models.Model):
    """Login identity shared by residents, staff and administrators."""

    RESIDENT = "RESIDENT"
    STAFF = "STAFF"
    ADMIN = "ADMIN"

    ROLE_CHOICES = [
        (RESIDENT, "Resident"),
        (STAFF, "Staff"),
        (ADMIN, "Admin"),
    ]

    username = models.CharField(max_length=255, unique=True, db_index=True)
    password = models.CharField(max_length=255, help_text="Salted password hash")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=RESIDENT, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "accounts"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.username} ({self.role})"

    # DRF permission classes look for this on request.user
    @property
    def is_authenticated(self):
        return True

    def set_password(self, raw_password: str):
        self.password = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password)

    def get_profile(self):
        """Return the Resident, Staff or Admin record owned by this account, if any."""
        for related_name in ("resident", "staff", "admin"):
            profile = getattr(self, related_name, None)
            if profile is not None:
                return profile
        return None
