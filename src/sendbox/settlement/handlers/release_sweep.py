from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEventV2
from aws_lambda_powertools.utilities.typing import LambdaContext

from sendbox import bootstrap
from sendbox.settlement.handlers.response_models import to_sweep_response
from sendbox.shared.utils import api_response
from sendbox.shared.utils.secrets import get_secret, verify_shared_secret

logger = Logger()

service = bootstrap.release_sweep_service()


def _is_scheduled(event: dict) -> bool:
    return event.get("source") == "aws.events"


@logger.inject_lambda_context
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """自動解放スイープの Lambda ハンドラー

    EventBridge のスケジュール、または x-cron-secret ヘッダー付きの HTTP 呼び出しで起動する。
    """
    if not _is_scheduled(event):
        http_event = APIGatewayProxyEventV2(event)
        actual = http_event.headers.get("x-cron-secret")
        expected = get_secret(bootstrap.settings().cron_secret_env)
        if not verify_shared_secret(actual, expected):
            logger.warning("Sweep called with an invalid secret")
            return api_response(401, {"status": "error", "error": "unauthenticated"})

    report = service.run()
    body = to_sweep_response(report)
    if _is_scheduled(event):
        return body
    return api_response(200, body)
