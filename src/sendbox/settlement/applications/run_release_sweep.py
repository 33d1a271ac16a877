import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from aws_lambda_powertools import Logger

from sendbox.booking.applications.booking_transition import Clock, utc_now
from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import ReleaseTrigger
from sendbox.booking.domain.repository import BookingRepository
from sendbox.settlement.applications.release_funds import ReleaseFundsService
from sendbox.settlement.domain import ReleaseResult, SweepError, SweepReport
from sendbox.shared.config import EngineSettings

logger = Logger(child=True)


class RunReleaseSweepService:
    """自動解放スイープ

    配達から猶予期間が過ぎても確認されていない予約と、解放処理が中断された
    予約を対象に、1 件ずつ独立して資金を解放する。1 件の失敗はバッチ全体を
    止めず、先に成功した解放も取り消さない。
    """

    def __init__(
        self,
        repository: BookingRepository,
        release_service: ReleaseFundsService,
        settings: EngineSettings,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository
        self._release_service = release_service
        self._settings = settings
        self._clock = clock or utc_now

    def run(self) -> SweepReport:
        if not self._settings.payments_enabled:
            logger.info("Payments disabled, sweep skipped")
            return SweepReport()

        candidates = self._candidates()
        logger.info("Release sweep started", extra={"candidates": len(candidates)})
        if not candidates:
            return SweepReport()

        released = 0
        errors: list[SweepError] = []
        deadline = time.monotonic() + self._settings.sweep_deadline_seconds
        executor = ThreadPoolExecutor(max_workers=self._settings.sweep_max_workers)
        try:
            futures = [
                (booking, executor.submit(self._release_one, booking))
                for booking in candidates
            ]
            for booking, future in futures:
                booking_id = str(booking.id)
                remaining = max(0.0, deadline - time.monotonic())
                timeout = min(self._settings.sweep_item_timeout_seconds, remaining)
                try:
                    result = future.result(timeout=timeout)
                except FutureTimeoutError:
                    future.cancel()
                    logger.warning("Release timed out", extra={"booking_id": booking_id})
                    errors.append(SweepError(booking_id=booking_id, message="timeout"))
                    continue
                except Exception as e:
                    logger.exception("Release failed", extra={"booking_id": booking_id})
                    errors.append(SweepError(booking_id=booking_id, message=str(e)))
                    continue

                if result.released:
                    released += 1
                elif result.error:
                    errors.append(SweepError(booking_id=booking_id, message=result.error))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        report = SweepReport(processed=len(candidates), released=released, errors=errors)
        logger.info(
            "Release sweep finished",
            extra={
                "processed": report.processed,
                "released": report.released,
                "errors": len(report.errors),
            },
        )
        return report

    def _candidates(self) -> list[Booking]:
        now = self._clock()
        due = self._repository.list_delivered_before(now - self._settings.auto_release_grace)
        stale = self._repository.list_stale_release_claims(
            now - self._settings.release_claim_timeout
        )
        unique: dict[str, Booking] = {}
        for booking in [*due, *stale]:
            unique.setdefault(str(booking.id), booking)
        return list(unique.values())

    def _release_one(self, booking: Booking) -> ReleaseResult:
        return self._release_service.release(booking.id, ReleaseTrigger.AUTO_RELEASE)
