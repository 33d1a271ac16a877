from .currency import Currency as Currency
from .money import Money as Money
from .user_id import UserId as UserId
