"""
Domain models for cost estimation.
Defines the per-resource cost delta and the aggregated estimation result.
"""
from typing import List, Dict, Any
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CostEstimate:
    """Estimated monthly cost delta for one changed resource."""
    resource_address: str
    resource_type: str
    action: str  # actions joined with '+', e.g. "create", "delete+create"
    monthly_cost: float  # signed: negative means savings
    details: str
    supported: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "resource_address": self.resource_address,
            "resource_type": self.resource_type,
            "action": self.action,
            "monthly_cost_usd": round(self.monthly_cost, 2),
            "details": self.details,
            "supported": self.supported,
        }


@dataclass
class EstimationResult:
    """Aggregated cost impact of a plan."""
    estimates: List[CostEstimate] = field(default_factory=list)
    total_monthly_cost: float = 0.0
    total_monthly_change: float = 0.0  # positive = increase, negative = decrease
    created_resources: int = 0
    destroyed_resources: int = 0
    updated_resources: int = 0
    unsupported_types: List[str] = field(default_factory=list)

    @property
    def has_unsupported_types(self) -> bool:
        return bool(self.unsupported_types)

    @property
    def is_increase(self) -> bool:
        return self.total_monthly_change > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "currency": "USD",
            "total_monthly_cost_usd": round(self.total_monthly_cost, 2),
            "total_monthly_change_usd": round(self.total_monthly_change, 2),
            "created_resources": self.created_resources,
            "destroyed_resources": self.destroyed_resources,
            "updated_resources": self.updated_resources,
            "unsupported_types": list(self.unsupported_types),
            "estimates": [estimate.to_dict() for estimate in self.estimates],
        }
