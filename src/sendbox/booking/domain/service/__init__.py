from .capacity_ledger import CapacityLedger as CapacityLedger
from .kyc_gate import KycGate as KycGate
from .pricing import compute_amounts as compute_amounts
from .pricing import from_minor_units as from_minor_units
from .pricing import to_minor_units as to_minor_units
