from .announcement_status import AnnouncementStatus as AnnouncementStatus
from .booking_status import BookingStatus as BookingStatus
from .kyc_status import KycStatus as KycStatus
from .release_trigger import ReleaseTrigger as ReleaseTrigger
