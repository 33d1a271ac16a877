from dataclasses import dataclass

from sendbox.booking.domain.enum import KycStatus


@dataclass(frozen=True)
class KycVerification:
    """本人確認の状態"""

    status: KycStatus
    rejection_reason: str | None = None

    @property
    def is_approved(self) -> bool:
        return self.status == KycStatus.APPROVED
