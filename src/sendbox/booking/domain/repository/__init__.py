from .announcement_repository import AnnouncementRepository as AnnouncementRepository
from .booking_repository import BookingRepository as BookingRepository
