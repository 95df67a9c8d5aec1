from .user import UserBase, UserCreate, UserLogin, UserResponse, Token
from .vendor import (
    VendorCreate,
    VendorUpdate,
    VendorResponse,
    VendorDetailResponse,
    PackageCreate,
    PackageUpdate,
    PackageResponse,
    PackageExtraBase,
    PackageExtraResponse,
    PackageEstimateRequest,
    PackageEstimateResponse,
    PackageEstimateLine,
    ExtraSelection,
)
from .booking_request import (
    BookingRequestCreate,
    BookingRequestResponse,
    BookingRequestVariant,
    TransitionRequest,
    IncomingRequest,
    CounterOfferRequest,
    PendingPaymentRequest,
    ConfirmedBooking,
    ClosedRequest,
    RequestQueuesResponse,
)
from .availability import (
    AvailabilitySettingsUpdate,
    AvailabilitySettingsResponse,
    BlockedDateCreate,
    BlockedDatesResponse,
    CalendarDayResponse,
    MonthCalendarResponse,
    SelectionToggleRequest,
    SelectionResponse,
    BookingResponse,
)
from .rating import RatingCreate, RatingResponse, RatingStats, RatingPage
from .view import ViewTracked, ViewStats
from .admin import (
    AdminAnalytics,
    AdminRequestRow,
    RejectPayload,
    ExpireResult,
    OnboardingApplicationCreate,
    OnboardingApplicationResponse,
    InvitationCreate,
    InvitationResponse,
    InvitationStatus,
)
