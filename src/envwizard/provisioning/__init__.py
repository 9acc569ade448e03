"""Service provisioners."""

from .base import (
    ProvisionResult,
    ProvisionStatus,
    ServiceProvisioner,
    ServiceState,
    StepOutcome,
    compute_status,
)
from .github import GitHubProvisioner
from .supabase import SupabaseProvisioner

__all__ = [
    "GitHubProvisioner",
    "ProvisionResult",
    "ProvisionStatus",
    "ServiceProvisioner",
    "ServiceState",
    "StepOutcome",
    "SupabaseProvisioner",
    "compute_status",
]
