from sendbox.booking.domain.enum import KycStatus
from sendbox.booking.domain.gateway import KycStatusProvider
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import KycRequiredException


class KycGate:
    """本人確認が承認済みでない利用者の操作を拒否する"""

    def __init__(self, provider: KycStatusProvider, enabled: bool = True) -> None:
        self._provider = provider
        self._enabled = enabled

    def ensure_approved(self, user_id: UserId) -> None:
        if not self._enabled:
            return
        verification = self._provider.get_verification(user_id)
        if verification is not None and verification.is_approved:
            return

        status = verification.status if verification else None
        if status == KycStatus.PENDING:
            raise KycRequiredException(
                message="Identity verification in progress",
                details="Your identity verification is being reviewed. "
                "You will be able to book once it is approved.",
                kyc_status=status.value,
            )
        if status == KycStatus.REJECTED:
            reason = verification.rejection_reason or "No reason provided"
            raise KycRequiredException(
                message="Identity verification rejected",
                details=f"Your identity verification was rejected: {reason}. "
                "Please submit it again.",
                kyc_status=status.value,
            )
        raise KycRequiredException(
            message="Identity verification required",
            details="Please verify your identity before booking.",
            kyc_status=status.value if status else None,
        )
