from .announcement_id import AnnouncementId as AnnouncementId
from .booking_id import BookingId as BookingId
from .kyc_verification import KycVerification as KycVerification
from .price_breakdown import PriceBreakdown as PriceBreakdown
from .pricing_policy import PricingPolicy as PricingPolicy
from .booking_timeline import BookingTimeline as BookingTimeline
