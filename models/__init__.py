from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import LoginSession
from .hotel import Hotel
from .availability import HotelAvailability
from .booking import Booking
from .payment_intent import PaymentIntent
