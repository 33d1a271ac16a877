import functools
from collections.abc import Callable
from typing import TypeVar

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEventV2
from pydantic import BaseModel, ValidationError

from sendbox.shared.domain.exception import (
    DomainException,
    ValidationFailedException,
)
from sendbox.shared.utils.http_response import error_response, internal_error_response

M = TypeVar("M", bound=BaseModel)


def parse_body(event: APIGatewayProxyEventV2, model: type[M]) -> M:
    """リクエストボディを Pydantic モデルで検証する"""
    try:
        return model.model_validate_json(event.decoded_body or "{}")
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationFailedException(
            first.get("msg", "Invalid data"), field=field
        ) from e


def handle_api_errors(logger: Logger) -> Callable:
    """ドメイン例外を HTTP レスポンスに変換するデコレーター

    想定外の例外はログに残して 500 を返す。
    """

    def decorator(handler: Callable[..., dict]) -> Callable[..., dict]:
        @functools.wraps(handler)
        def wrapper(event, context) -> dict:
            try:
                return handler(event, context)
            except DomainException as e:
                logger.info(
                    "Request rejected",
                    extra={"error": e.kind, "detail": str(e)},
                )
                return error_response(e)
            except Exception:
                logger.exception("Unexpected error")
                return internal_error_response()

        return wrapper

    return decorator
