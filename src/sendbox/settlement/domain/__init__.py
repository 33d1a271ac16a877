from .gateway import PayoutAccountProvider as PayoutAccountProvider
from .value_object import PayoutAccount as PayoutAccount
from .value_object import ReleaseResult as ReleaseResult
from .value_object import SweepError as SweepError
from .value_object import SweepReport as SweepReport
