from .crud_user import user
from . import crud_vendor
from . import crud_package
from . import crud_booking_request
from . import crud_availability
from . import crud_message
from . import crud_rating
from . import crud_view
from . import crud_onboarding
