import base64
import io
import json
import logging
import qrcode
from qrcode.constants import ERROR_CORRECT_M
from django.core.serializers.json import DjangoJSONEncoder
from django.forms.models import model_to_dict
from django.utils import timezone

from registry.exceptions import NotFoundError
from registry.models import Account, DigitalID, Resident, Staff

logger = logging.getLogger(__name__)


def encode_qr_code(data: str) -> str:
    """Render ``data`` as a QR code and return it as a PNG data URL."""
    qr = qrcode.QRCode(version=None, error_correction=ERROR_CORRECT_M, box_size=10, border=2)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


class DigitalIDService:
    """Issues digital IDs on approval and assembles the card shown to holders."""

    def build_payload(self, profile, account: Account) -> dict:
        """
        The applicant record embedded in the QR code.

        Contains every profile field plus the username and role; the password
        hash never leaves the account table.
        """
        payload = model_to_dict(profile, exclude=["account", "issued_by", "household"])
        payload["profile_id"] = profile.pk
        payload["household_id"] = profile.household_id
        payload["username"] = account.username
        payload["role"] = account.role
        return payload

    def issue(self, profile, account: Account, issuer: Account) -> DigitalID:
        """Create the DigitalID for a freshly approved Resident or Staff profile."""
        payload = json.dumps(self.build_payload(profile, account), cls=DjangoJSONEncoder)
        holder = {"resident": profile} if isinstance(profile, Resident) else {"staff": profile}

        digital_id = DigitalID.objects.create(
            id_number=f"ID-{account.pk}",
            payload=payload,
            qr_code=encode_qr_code(payload),
            issued_by=issuer,
            issued_at=timezone.now(),
            **holder,
        )
        logger.info(f"Issued digital ID {digital_id.id_number} by account {issuer.pk}")
        return digital_id

    def get_card(self, account: Account) -> dict:
        """
        Digital ID card data for the holder's dashboard.

        Raises:
            NotFoundError: the account has no resident/staff profile or no ID yet
        """
        profile = (
            Resident.objects.filter(account=account).select_related("household").first()
            or Staff.objects.filter(account=account).select_related("household").first()
        )
        if profile is None:
            raise NotFoundError("Resident not found")

        digital_id = DigitalID.objects.filter(**{self._holder_field(profile): profile}).first()
        if digital_id is None:
            raise NotFoundError("Digital ID not found")

        return {
            "digitalID": {
                "id": digital_id.pk,
                "id_number": digital_id.id_number,
                "qr_code": digital_id.qr_code,
                "issued_at": digital_id.issued_at,
                "issued_by": digital_id.issued_by_id,
            },
            "holder": {
                "profile_id": profile.pk,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "birthdate": profile.birthdate,
                "address": profile.address,
                "photo_url": profile.photo_url,
                "household_number": profile.household_number,
                "head_id": profile.head_id,
                "is_renter": profile.is_renter,
                "memberships": profile.memberships(),
            },
            "household_head": self._household_head_name(profile),
            "landlord": self._landlord(profile),
        }

    @staticmethod
    def _holder_field(profile) -> str:
        return "resident" if isinstance(profile, Resident) else "staff"

    def _household_head_name(self, profile) -> str:
        # The household knows its head whichever profile table the head lives in
        head = profile.household.head if profile.household is not None else None
        if head is None and profile.head_id:
            model = Resident if isinstance(profile, Resident) else Staff
            head = model.objects.filter(pk=profile.head_id).first()
        return head.full_name if head else "N/A"

    def _landlord(self, profile):
        # Renters show the head of the household they rent in
        if not profile.is_renter or profile.household is None:
            return None
        head = profile.household.head
        if head is None or head == profile:
            return None
        return {"name": head.full_name, "contact_no": head.contact_no, "address": head.address}
