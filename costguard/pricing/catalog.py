"""
Static price catalog.
Approximate US East on-demand unit prices (USD) grouped by resource family.
"""
from enum import Enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Tuple, Union, Any


class PriceFamily(Enum):
    """Resource families with their own pricing table."""
    EC2_INSTANCE = "ec2_instance"  # per hour
    RDS_INSTANCE = "rds_instance"  # per hour
    EBS_STORAGE = "ebs_storage"  # per GB-month
    LOAD_BALANCER = "load_balancer"  # per hour
    NAT_GATEWAY = "nat_gateway"  # per hour
    ELASTICACHE_NODE = "elasticache_node"  # per node-hour
    EKS_CLUSTER = "eks_cluster"  # per control-plane hour
    LAMBDA_COMPUTE = "lambda_compute"  # per GB-second
    FARGATE_TASK = "fargate_task"  # per vCPU-hour / GB-hour
    S3_BUCKET = "s3_bucket"  # flat per month
    GCP_INSTANCE = "gcp_instance"  # per hour
    AZURE_VM = "azure_vm"  # per hour


FamilyKey = Union[PriceFamily, str]


# Family -> (fallback class, {class: unit rate})
# The fallback is the cheapest/smallest class of the family.
DEFAULT_PRICES: Dict[PriceFamily, Tuple[str, Dict[str, float]]] = {
    PriceFamily.EC2_INSTANCE: ("t3.micro", {
        # General Purpose
        "t3.nano": 0.0052,
        "t3.micro": 0.0104,
        "t3.small": 0.0208,
        "t3.medium": 0.0416,
        "t3.large": 0.0832,
        "t3.xlarge": 0.1664,
        "t3.2xlarge": 0.3328,
        "t3a.nano": 0.0047,
        "t3a.micro": 0.0094,
        "t3a.small": 0.0188,
        "t3a.medium": 0.0376,
        "t3a.large": 0.0752,
        "t3a.xlarge": 0.1504,
        "t3a.2xlarge": 0.3008,
        "m5.large": 0.096,
        "m5.xlarge": 0.192,
        "m5.2xlarge": 0.384,
        "m5.4xlarge": 0.768,
        "m5.8xlarge": 1.536,
        "m5.12xlarge": 2.304,
        "m5.16xlarge": 3.072,
        "m5.24xlarge": 4.608,
        "m6i.large": 0.096,
        "m6i.xlarge": 0.192,
        "m6i.2xlarge": 0.384,
        "m6i.4xlarge": 0.768,
        # Compute Optimized
        "c5.large": 0.085,
        "c5.xlarge": 0.17,
        "c5.2xlarge": 0.34,
        "c5.4xlarge": 0.68,
        "c5.9xlarge": 1.53,
        "c5.18xlarge": 3.06,
        "c6i.large": 0.085,
        "c6i.xlarge": 0.17,
        "c6i.2xlarge": 0.34,
        # Memory Optimized
        "r5.large": 0.126,
        "r5.xlarge": 0.252,
        "r5.2xlarge": 0.504,
        "r5.4xlarge": 1.008,
        "r5.8xlarge": 2.016,
        "r5.12xlarge": 3.024,
        # GPU Instances
        "p3.2xlarge": 3.06,
        "p3.8xlarge": 12.24,
        "p3.16xlarge": 24.48,
        "g4dn.xlarge": 0.526,
        "g4dn.2xlarge": 0.752,
        "g4dn.4xlarge": 1.204,
    }),
    PriceFamily.RDS_INSTANCE: ("db.t3.micro", {
        "db.t3.micro": 0.017,
        "db.t3.small": 0.034,
        "db.t3.medium": 0.068,
        "db.t3.large": 0.136,
        "db.t3.xlarge": 0.272,
        "db.t3.2xlarge": 0.544,
        "db.m5.large": 0.171,
        "db.m5.xlarge": 0.342,
        "db.m5.2xlarge": 0.684,
        "db.m5.4xlarge": 1.368,
        "db.r5.large": 0.24,
        "db.r5.xlarge": 0.48,
        "db.r5.2xlarge": 0.96,
        "db.r5.4xlarge": 1.92,
    }),
    PriceFamily.EBS_STORAGE: ("gp2", {
        "gp2": 0.10,
        "gp3": 0.08,
        "io1": 0.125,
        "io2": 0.125,
        "st1": 0.045,
        "sc1": 0.015,
        "standard": 0.05,
    }),
    PriceFamily.LOAD_BALANCER: ("alb", {
        "alb": 0.0225,
        "nlb": 0.0225,
        "classic": 0.025,
    }),
    PriceFamily.NAT_GATEWAY: ("gateway", {
        "gateway": 0.045,
    }),
    PriceFamily.ELASTICACHE_NODE: ("cache.t3.micro", {
        "cache.t3.micro": 0.017,
        "cache.t3.small": 0.034,
        "cache.t3.medium": 0.068,
        "cache.m5.large": 0.156,
        "cache.m5.xlarge": 0.312,
        "cache.m5.2xlarge": 0.624,
        "cache.r5.large": 0.226,
        "cache.r5.xlarge": 0.452,
    }),
    PriceFamily.EKS_CLUSTER: ("control_plane", {
        "control_plane": 0.10,
    }),
    PriceFamily.LAMBDA_COMPUTE: ("gb_second", {
        "gb_second": 0.0000166667,
    }),
    PriceFamily.FARGATE_TASK: ("vcpu_hour", {
        "vcpu_hour": 0.04048,
        "gb_hour": 0.004445,
    }),
    PriceFamily.S3_BUCKET: ("bucket", {
        "bucket": 0.023,
    }),
    PriceFamily.GCP_INSTANCE: ("e2-micro", {
        "e2-micro": 0.0084,
        "e2-small": 0.0168,
        "e2-medium": 0.0336,
        "e2-standard-2": 0.0672,
        "e2-standard-4": 0.1344,
        "e2-standard-8": 0.2688,
        "n1-standard-1": 0.0475,
        "n1-standard-2": 0.095,
        "n1-standard-4": 0.19,
        "n1-standard-8": 0.38,
        "n2-standard-2": 0.0971,
        "n2-standard-4": 0.1942,
        "n2-standard-8": 0.3884,
    }),
    PriceFamily.AZURE_VM: ("Standard_B1s", {
        "Standard_B1s": 0.0104,
        "Standard_B1ms": 0.0207,
        "Standard_B2s": 0.0416,
        "Standard_B2ms": 0.0832,
        "Standard_D2s_v3": 0.096,
        "Standard_D4s_v3": 0.192,
        "Standard_D8s_v3": 0.384,
        "Standard_E2s_v3": 0.126,
        "Standard_E4s_v3": 0.252,
        "Standard_E8s_v3": 0.504,
        "Standard_F2s_v2": 0.085,
        "Standard_F4s_v2": 0.169,
        "Standard_F8s_v2": 0.338,
    }),
}


def _family_name(family: FamilyKey) -> str:
    return family.value if isinstance(family, PriceFamily) else family


@dataclass(frozen=True)
class PriceCatalog:
    """
    Immutable table of unit rates keyed by family and size/class.

    Every family carries a fallback class that is guaranteed to be present in
    its table. Lookups of a class the table does not know resolve to that
    fallback rate, never to zero.
    """
    rates: Mapping[str, Mapping[str, float]]
    fallbacks: Mapping[str, str]

    def __post_init__(self) -> None:
        rates = {}
        for family, table in self.rates.items():
            name = _family_name(family)
            if not table:
                raise ValueError(f"Price family '{name}' has no entries")
            for class_id, rate in table.items():
                if rate < 0:
                    raise ValueError(
                        f"Negative rate for {name}/{class_id}: {rate}"
                    )
            rates[name] = MappingProxyType({k: float(v) for k, v in table.items()})

        fallbacks = {_family_name(f): c for f, c in self.fallbacks.items()}
        for name, table in rates.items():
            fallback = fallbacks.get(name)
            if fallback is None:
                raise ValueError(f"Price family '{name}' has no fallback class")
            if fallback not in table:
                raise ValueError(
                    f"Fallback class '{fallback}' is not priced in family '{name}'"
                )
        unknown = set(fallbacks) - set(rates)
        if unknown:
            raise ValueError(f"Fallbacks declared for unknown families: {sorted(unknown)}")

        # Replace the caller's dicts with read-only views
        object.__setattr__(self, "rates", MappingProxyType(rates))
        object.__setattr__(self, "fallbacks", MappingProxyType(fallbacks))

    def _table(self, family: FamilyKey) -> Mapping[str, float]:
        name = _family_name(family)
        try:
            return self.rates[name]
        except KeyError:
            raise KeyError(f"Unknown price family: {name}") from None

    def rate(self, family: FamilyKey, class_id: str) -> float:
        """
        Get the unit rate for a class, falling back to the family default.

        Args:
            family: Price family
            class_id: Size/class identifier (e.g., 't3.micro', 'gp3')

        Returns:
            Unit rate for the class, or the fallback class rate when the
            class is not in the table

        Raises:
            KeyError: If the family itself is unknown
        """
        table = self._table(family)
        if class_id in table:
            return table[class_id]
        return table[self.fallback_class(family)]

    def has_rate(self, family: FamilyKey, class_id: str) -> bool:
        """Whether the class is explicitly priced in the family table."""
        return class_id in self._table(family)

    def fallback_class(self, family: FamilyKey) -> str:
        """Fallback class identifier of a family."""
        self._table(family)
        return self.fallbacks[_family_name(family)]

    def classes(self, family: FamilyKey) -> Tuple[str, ...]:
        """All priced class identifiers of a family, in table order."""
        return tuple(self._table(family))

    def families(self) -> Tuple[str, ...]:
        """All family names, in table order."""
        return tuple(self.rates)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            name: {
                "fallback": self.fallbacks[name],
                "rates": dict(table),
            }
            for name, table in self.rates.items()
        }


def create_default_catalog() -> PriceCatalog:
    """
    Build the default price catalog.

    Returns:
        PriceCatalog with the approximate on-demand prices above
    """
    return PriceCatalog(
        rates={family: table for family, (_, table) in DEFAULT_PRICES.items()},
        fallbacks={family: fallback for family, (fallback, _) in DEFAULT_PRICES.items()},
    )
