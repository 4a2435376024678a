"""
Provider adapters: authentication, endpoint shape and default parameters
for each supported ATS.
"""

from .adapter_factory import AdapterFactory, get_adapter
from .adapters import (
    BambooHRAdapter,
    BullhornAdapter,
    GenericAdapter,
    GreenhouseAdapter,
    ICIMSAdapter,
    JazzHRAdapter,
    JobviteAdapter,
    LeverAdapter,
    SuccessFactorsAdapter,
    TaleoAdapter,
    WorkdayAdapter,
)
from .base import ProviderAdapter, basic_auth

__all__ = [
    "AdapterFactory",
    "get_adapter",
    "ProviderAdapter",
    "basic_auth",
    "BambooHRAdapter",
    "BullhornAdapter",
    "GenericAdapter",
    "GreenhouseAdapter",
    "ICIMSAdapter",
    "JazzHRAdapter",
    "JobviteAdapter",
    "LeverAdapter",
    "SuccessFactorsAdapter",
    "TaleoAdapter",
    "WorkdayAdapter",
]
