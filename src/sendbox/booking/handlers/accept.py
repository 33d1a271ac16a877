from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import (
    APIGatewayProxyEventV2,
    event_source,
)
from aws_lambda_powertools.utilities.typing import LambdaContext

from sendbox import bootstrap
from sendbox.booking.domain.value_object import BookingId
from sendbox.booking.handlers.response_models import to_response
from sendbox.shared.utils import api_response
from sendbox.shared.utils.api import handle_api_errors
from sendbox.shared.utils.auth import get_actor_id, get_path_parameter

logger = Logger()

service = bootstrap.accept_booking_service()


@logger.inject_lambda_context
@handle_api_errors(logger)
@event_source(data_class=APIGatewayProxyEventV2)
def lambda_handler(event: APIGatewayProxyEventV2, context: LambdaContext) -> dict:
    """予約承諾の Lambda ハンドラー"""
    actor_id = get_actor_id(event)
    booking_id = BookingId(value=get_path_parameter(event, "booking_id"))

    logger.info("Received accept request", extra={"booking_id": str(booking_id)})

    result = service.accept(actor_id, booking_id)
    return api_response(
        200, to_response(result.booking, already_processed=result.already_processed)
    )
