from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import (
    APIGatewayProxyEventV2,
    event_source,
)
from aws_lambda_powertools.utilities.typing import LambdaContext

from sendbox import bootstrap
from sendbox.booking.domain.value_object import BookingId
from sendbox.payment.handlers.response_models import to_hold_response
from sendbox.shared.utils import api_response
from sendbox.shared.utils.api import handle_api_errors
from sendbox.shared.utils.auth import get_actor_id, get_path_parameter

logger = Logger()

service = bootstrap.create_hold_service()


@logger.inject_lambda_context
@handle_api_errors(logger)
@event_source(data_class=APIGatewayProxyEventV2)
def lambda_handler(event: APIGatewayProxyEventV2, context: LambdaContext) -> dict:
    """支払い保留作成の Lambda ハンドラー"""
    sender_id = get_actor_id(event)
    booking_id = get_path_parameter(event, "booking_id")
    logger.info("Received create hold request", extra={"booking_id": booking_id})

    result = service.create_hold(sender_id, BookingId(value=booking_id))
    return api_response(200, to_hold_response(booking_id, result))
