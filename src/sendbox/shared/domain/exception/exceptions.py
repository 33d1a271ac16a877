from __future__ import annotations

from typing import ClassVar


class DomainException(Exception):
    """ドメイン層で発生する基底例外

    kind はハンドラーが HTTP ステータスへ変換する際のキー。
    user_message はエンドユーザーへそのまま表示してよい文言。
    """

    kind: ClassVar[str] = "domain_error"
    default_message: ClassVar[str] = "The request could not be completed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self)


class UnauthenticatedException(DomainException):
    """認証されていない場合"""

    kind = "unauthenticated"
    default_message = "You must be signed in"


class ForbiddenException(DomainException):
    """操作主体が予約の当事者ではない場合"""

    kind = "forbidden"
    default_message = "You are not allowed to perform this action"


class ResourceNotFoundException(DomainException):
    """リソースが見つからない場合"""

    kind = "not_found"
    default_message = "Resource not found"


class BusinessRuleViolationException(DomainException):
    """ビジネスルールに違反した場合"""

    kind = "business_rule_violation"


class InvalidStateException(BusinessRuleViolationException):
    """現在のステータスでは許可されない遷移"""

    kind = "invalid_state"


class CapacityExceededException(BusinessRuleViolationException):
    """アナウンスの残り積載量を超える場合"""

    kind = "capacity_exceeded"


class LimitExceededException(BusinessRuleViolationException):
    """保留中の予約数が上限に達している場合"""

    kind = "limit_exceeded"


class KycRequiredException(BusinessRuleViolationException):
    """本人確認が承認されていない場合

    kyc_status に pending / rejected / incomplete / None のいずれかを保持する。
    """

    kind = "kyc_required"

    def __init__(
        self,
        message: str,
        details: str,
        kyc_status: str | None,
    ) -> None:
        super().__init__(message)
        self.details = details
        self.kyc_status = kyc_status


class ValidationFailedException(DomainException):
    """入力値（重量・金額など）が不正な場合"""

    kind = "validation_failed"
    default_message = "Invalid data"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ProcessorException(DomainException):
    """決済プロセッサ呼び出しの失敗

    内部メッセージはログ専用。利用者には汎用メッセージのみ返す。
    """

    kind = "processor_error"
    default_message = "Payment processor call failed"

    @property
    def user_message(self) -> str:
        return "Payment could not be processed"


class PaymentsDisabledException(DomainException):
    """決済機能が無効化されている場合"""

    kind = "payments_disabled"
    default_message = "Payments are currently unavailable"


class DuplicateResourceException(DomainException):
    """リソースの重複エラー（条件付き書き込みの失敗時）"""

    kind = "duplicate"


class OptimisticLockException(DomainException):
    """楽観ロックの競合エラー（ステータスが期待値と異なる場合）"""

    kind = "conflict"


class InvalidSignatureException(DomainException):
    """Webhook の署名検証に失敗した場合"""

    kind = "invalid_signature"
    default_message = "Invalid signature"
