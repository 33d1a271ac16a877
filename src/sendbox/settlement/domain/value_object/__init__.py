from .payout_account import PayoutAccount as PayoutAccount
from .release_result import ReleaseResult as ReleaseResult
from .release_result import SweepError as SweepError
from .release_result import SweepReport as SweepReport
