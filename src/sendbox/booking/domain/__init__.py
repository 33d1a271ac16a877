from .entity import Announcement as Announcement
from .entity import Booking as Booking
from .enum import AnnouncementStatus as AnnouncementStatus
from .enum import BookingStatus as BookingStatus
from .enum import KycStatus as KycStatus
from .enum import ReleaseTrigger as ReleaseTrigger
from .factory import BookingFactory as BookingFactory
from .repository import AnnouncementRepository as AnnouncementRepository
from .repository import BookingRepository as BookingRepository
from .value_object import AnnouncementId as AnnouncementId
from .value_object import BookingId as BookingId
from .value_object import PriceBreakdown as PriceBreakdown
from .value_object import PricingPolicy as PricingPolicy
