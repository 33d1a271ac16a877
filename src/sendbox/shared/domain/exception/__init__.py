from .exceptions import (
    BusinessRuleViolationException as BusinessRuleViolationException,
)
from .exceptions import (
    CapacityExceededException as CapacityExceededException,
)
from .exceptions import (
    DomainException as DomainException,
)
from .exceptions import (
    DuplicateResourceException as DuplicateResourceException,
)
from .exceptions import (
    ForbiddenException as ForbiddenException,
)
from .exceptions import (
    InvalidSignatureException as InvalidSignatureException,
)
from .exceptions import (
    InvalidStateException as InvalidStateException,
)
from .exceptions import (
    KycRequiredException as KycRequiredException,
)
from .exceptions import (
    LimitExceededException as LimitExceededException,
)
from .exceptions import (
    OptimisticLockException as OptimisticLockException,
)
from .exceptions import (
    PaymentsDisabledException as PaymentsDisabledException,
)
from .exceptions import (
    ProcessorException as ProcessorException,
)
from .exceptions import (
    ResourceNotFoundException as ResourceNotFoundException,
)
from .exceptions import (
    UnauthenticatedException as UnauthenticatedException,
)
from .exceptions import (
    ValidationFailedException as ValidationFailedException,
)
