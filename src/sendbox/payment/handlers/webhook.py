from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import (
    APIGatewayProxyEventV2,
    event_source,
)
from aws_lambda_powertools.utilities.typing import LambdaContext

from sendbox import bootstrap
from sendbox.payment.handlers.response_models import EventAcknowledgement
from sendbox.shared.domain.exception import InvalidSignatureException
from sendbox.shared.utils import api_response, error_response, internal_error_response

logger = Logger()

processor = bootstrap.payment_processor()
service = bootstrap.processor_event_service()


@logger.inject_lambda_context
@event_source(data_class=APIGatewayProxyEventV2)
def lambda_handler(event: APIGatewayProxyEventV2, context: LambdaContext) -> dict:
    """決済プロセッサ Webhook の Lambda ハンドラー

    署名不正は 400、処理対象外のイベントは 200 で受領のみ返す。
    想定外のエラーは 500 を返し、プロセッサの再送に任せる（処理は冪等）。
    """
    signature = event.headers.get("stripe-signature") or ""
    try:
        processor_event = processor.parse_event(event.decoded_body or "", signature)
    except InvalidSignatureException as e:
        logger.warning("Webhook signature verification failed")
        return error_response(e)

    if processor_event is None:
        return api_response(200, EventAcknowledgement(outcome="ignored").model_dump())

    logger.info(
        "Processing payment event",
        extra={
            "event_id": processor_event.event_id,
            "event_type": type(processor_event).__name__,
        },
    )
    try:
        outcome = service.handle(processor_event)
    except Exception:
        logger.exception(
            "Payment event processing failed",
            extra={"event_id": processor_event.event_id},
        )
        return internal_error_response()
    return api_response(200, EventAcknowledgement(outcome=outcome.value).model_dump())
