from .user import User, UserRole
from .vendor import Vendor, VendorStatus
from .package import Package, PackageExtra, PricingType
from .request_status import RequestStatus, RequestAction, TERMINAL_STATUSES
from .booking_request import BookingRequest, BookingRequestDate
from .booking import Booking
from .availability import AvailabilitySettings, BlockedDate
from .message import Message
from .rating import VendorRating
from .vendor_view import VendorView
from .onboarding import (
    ApplicationStatus,
    VendorInvitation,
    VendorOnboardingApplication,
)

__all__ = [
    "User",
    "UserRole",
    "Vendor",
    "VendorStatus",
    "Package",
    "PackageExtra",
    "PricingType",
    "RequestStatus",
    "RequestAction",
    "TERMINAL_STATUSES",
    "BookingRequest",
    "BookingRequestDate",
    "Booking",
    "AvailabilitySettings",
    "BlockedDate",
    "Message",
    "VendorRating",
    "VendorView",
    "ApplicationStatus",
    "VendorInvitation",
    "VendorOnboardingApplication",
]
