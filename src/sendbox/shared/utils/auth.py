from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEventV2

from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import (
    ResourceNotFoundException,
    UnauthenticatedException,
)


def get_actor_id(event: APIGatewayProxyEventV2) -> UserId:
    """JWT オーソライザーの sub クレームから操作主体を取り出す"""
    authorizer = event.request_context.authorizer
    claims = authorizer.jwt_claim if authorizer else None
    subject = (claims or {}).get("sub")
    if not subject:
        raise UnauthenticatedException()
    return UserId(value=subject)


def get_path_parameter(event: APIGatewayProxyEventV2, name: str) -> str:
    """パスパラメータを取り出す（存在しない場合は 404 扱い）"""
    value = (event.path_parameters or {}).get(name)
    if not value:
        raise ResourceNotFoundException(f"{name} is required")
    return value
