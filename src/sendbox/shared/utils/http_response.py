import json

from sendbox.shared.domain.exception import (
    DomainException,
    KycRequiredException,
    ValidationFailedException,
)

_STATUS_BY_KIND: dict[str, int] = {
    "unauthenticated": 401,
    "forbidden": 403,
    "kyc_required": 403,
    "payments_disabled": 403,
    "not_found": 404,
    "invalid_state": 409,
    "business_rule_violation": 409,
    "capacity_exceeded": 409,
    "limit_exceeded": 409,
    "conflict": 409,
    "duplicate": 409,
    "validation_failed": 400,
    "invalid_signature": 400,
    "processor_error": 502,
}


def api_response(status_code: int, body: dict) -> dict:
    """API Gateway HTTP API のレスポンス形式を生成する"""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }


def error_response(error: DomainException) -> dict:
    """ドメイン例外をエラーレスポンスに変換する

    ProcessorException はプロセッサ内部の文言を含むため user_message のみ返す。
    """
    body: dict = {
        "status": "error",
        "error": error.kind,
        "message": error.user_message,
    }
    if isinstance(error, KycRequiredException):
        body["details"] = error.details
        body["kyc_status"] = error.kyc_status
    if isinstance(error, ValidationFailedException) and error.field:
        body["field"] = error.field
    return api_response(_STATUS_BY_KIND.get(error.kind, 400), body)


def internal_error_response() -> dict:
    """想定外の例外に対する汎用レスポンス"""
    return api_response(
        500, {"status": "error", "error": "internal", "message": "Internal server error"}
    )
