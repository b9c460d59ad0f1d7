"""Cross-boundary resolution of resource identifiers."""

from .cache import LookupHelperCache, ResolvedValueCache
from .lookup import Boto3LookupHelper, Boto3LookupHelperFactory, LookupHelper
from .resolver import CrossBoundaryResourceResolver, Strategy
from .scope import Scope

__all__ = [
    "Boto3LookupHelper",
    "Boto3LookupHelperFactory",
    "CrossBoundaryResourceResolver",
    "LookupHelper",
    "LookupHelperCache",
    "ResolvedValueCache",
    "Scope",
    "Strategy",
]
