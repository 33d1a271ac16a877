import pytest

from sendbox.booking.domain.enum import KycStatus
from sendbox.booking.domain.service import KycGate
from sendbox.booking.domain.value_object import KycVerification
from sendbox.shared.domain.exception import KycRequiredException


class TestKycGate:
    def test_approved_user_passes(self, kyc_provider, sender_id):
        KycGate(kyc_provider).ensure_approved(sender_id)

    def test_disabled_gate_skips_lookup(self, kyc_provider, sender_id):
        kyc_provider.default = None

        KycGate(kyc_provider, enabled=False).ensure_approved(sender_id)

    @pytest.mark.parametrize(
        "verification, message, status",
        [
            (
                KycVerification(status=KycStatus.PENDING),
                "Identity verification in progress",
                "pending",
            ),
            (
                KycVerification(status=KycStatus.INCOMPLETE),
                "Identity verification required",
                "incomplete",
            ),
            (None, "Identity verification required", None),
        ],
    )
    def test_not_approved_user_is_rejected(
        self, kyc_provider, sender_id, verification, message, status
    ):
        kyc_provider.default = verification

        with pytest.raises(KycRequiredException, match=message) as exc_info:
            KycGate(kyc_provider).ensure_approved(sender_id)

        assert exc_info.value.kyc_status == status

    def test_rejection_reason_is_included(self, kyc_provider, sender_id):
        kyc_provider.default = KycVerification(
            status=KycStatus.REJECTED, rejection_reason="Document expired"
        )

        with pytest.raises(KycRequiredException) as exc_info:
            KycGate(kyc_provider).ensure_approved(sender_id)

        assert exc_info.value.kyc_status == "rejected"
        assert "Document expired" in exc_info.value.details
