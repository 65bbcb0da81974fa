from .account import Account
from .household import Household
from .profile import Admin, Resident, Staff
from .registration_code import RegistrationCode
from .registration_request import RegistrationRequest
from .digital_id import DigitalID

__all__ = [
    "Account",
    "Admin",
    "DigitalID",
    "Household",
    "RegistrationCode",
    "RegistrationRequest",
    "Resident",
    "Staff",
]
