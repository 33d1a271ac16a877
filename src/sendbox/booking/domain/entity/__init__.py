from .announcement import Announcement as Announcement
from .booking import Booking as Booking
