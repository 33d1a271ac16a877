import base64
import binascii

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import (
    APIGatewayProxyEventV2,
    event_source,
)
from aws_lambda_powertools.utilities.typing import LambdaContext

from sendbox import bootstrap
from sendbox.booking.domain.factory import BookingDetails
from sendbox.booking.domain.gateway import PackagePhoto
from sendbox.booking.domain.value_object import AnnouncementId
from sendbox.booking.handlers.request_models import CreateBookingRequest, PhotoUpload
from sendbox.booking.handlers.response_models import to_response
from sendbox.shared.domain.exception import ValidationFailedException
from sendbox.shared.utils import api_response
from sendbox.shared.utils.api import handle_api_errors, parse_body
from sendbox.shared.utils.auth import get_actor_id

logger = Logger()

service = bootstrap.create_booking_service()


def _decode_photos(photos: list[PhotoUpload]) -> list[PackagePhoto]:
    try:
        return [
            PackagePhoto(
                content=base64.b64decode(photo.content_base64, validate=True),
                content_type=photo.content_type,
            )
            for photo in photos
        ]
    except binascii.Error as e:
        raise ValidationFailedException("Invalid photo encoding", field="photos") from e


@logger.inject_lambda_context
@handle_api_errors(logger)
@event_source(data_class=APIGatewayProxyEventV2)
def lambda_handler(event: APIGatewayProxyEventV2, context: LambdaContext) -> dict:
    """予約リクエスト作成の Lambda ハンドラー"""
    sender_id = get_actor_id(event)
    request = parse_body(event, CreateBookingRequest)
    logger.info(
        "Received create booking request",
        extra={"announcement_id": request.announcement_id},
    )

    booking_details: BookingDetails = {
        "weight_kg": request.weight_kg,
        "declared_value": request.declared_value,
        "insurance_opted": request.insurance_opted,
        "package_description": request.package_description.strip(),
    }
    booking = service.create(
        sender_id=sender_id,
        announcement_id=AnnouncementId(value=request.announcement_id),
        booking_details=booking_details,
        photos=_decode_photos(request.photos),
    )
    return api_response(201, to_response(booking))
