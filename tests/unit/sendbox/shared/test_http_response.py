import json

from sendbox.shared.domain.exception import (
    CapacityExceededException,
    KycRequiredException,
    ProcessorException,
    ValidationFailedException,
)
from sendbox.shared.utils import error_response


class TestErrorResponse:
    def test_capacity_exceeded_is_conflict(self):
        response = error_response(CapacityExceededException("Only 4 kg available"))

        body = json.loads(response["body"])
        assert response["statusCode"] == 409
        assert body["error"] == "capacity_exceeded"
        assert body["message"] == "Only 4 kg available"

    def test_kyc_details_are_exposed(self):
        response = error_response(
            KycRequiredException(
                message="Identity verification in progress",
                details="Being reviewed",
                kyc_status="pending",
            )
        )

        body = json.loads(response["body"])
        assert response["statusCode"] == 403
        assert body["kyc_status"] == "pending"
        assert body["details"] == "Being reviewed"

    def test_validation_field_is_included(self):
        response = error_response(ValidationFailedException("Invalid QR code", field="qr_code"))

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["field"] == "qr_code"

    def test_processor_detail_is_hidden(self):
        response = error_response(ProcessorException("No such destination: acct_123"))

        body = json.loads(response["body"])
        assert response["statusCode"] == 502
        assert "acct_123" not in body["message"]
