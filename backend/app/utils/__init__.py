from .json_utils import dumps
from .errors import BookingError, error_payload
from .auth import normalize_email
