"""
Plan estimator service.
Converts Terraform resource changes into a signed monthly cost delta.
"""
from typing import Dict, Any, Callable, Iterable, List, NamedTuple, Optional
import logging

from costguard.core.config import config
from costguard.domain.cost_models import CostEstimate, EstimationResult
from costguard.domain.plan_models import Plan, ResourceChange, CREATE, DELETE, UPDATE, NO_OP
from costguard.pricing.catalog import PriceCatalog, PriceFamily, create_default_catalog
from costguard.utils.attributes import get_number_attr, get_string_attr


logger = logging.getLogger(__name__)


# Usage assumptions for resources billed by usage rather than by the hour
LAMBDA_MONTHLY_INVOCATIONS = 1_000_000
LAMBDA_AVERAGE_DURATION_SECONDS = 0.1
FARGATE_TASK_VCPU = 0.25
FARGATE_TASK_MEMORY_GB = 0.5


class ResourcePrice(NamedTuple):
    """Monthly price of one resource configuration."""
    monthly_cost: float
    details: str
    supported: bool


PricingRule = Callable[[Dict[str, Any]], ResourcePrice]

UNSUPPORTED_PRICE = ResourcePrice(0.0, "unsupported resource type", False)


class PlanEstimator:
    """Service for estimating the cost impact of Terraform plans."""

    def __init__(self, catalog: Optional[PriceCatalog] = None):
        """
        Initialize plan estimator.

        Args:
            catalog: Price catalog (creates the default catalog if None)
        """
        self.catalog = catalog or create_default_catalog()
        self.hours_per_month = config.HOURS_PER_MONTH

        # Terraform resource type -> pricing rule
        self._rules: Dict[str, PricingRule] = {
            # AWS
            "aws_instance": self._price_ec2_instance,
            "aws_db_instance": self._price_rds_instance,
            "aws_ebs_volume": self._price_ebs_volume,
            "aws_lb": self._price_load_balancer,
            "aws_alb": self._price_load_balancer,
            "aws_elb": self._price_classic_load_balancer,
            "aws_nat_gateway": self._price_nat_gateway,
            "aws_elasticache_cluster": self._price_elasticache_cluster,
            "aws_lambda_function": self._price_lambda_function,
            "aws_s3_bucket": self._price_s3_bucket,
            "aws_eks_cluster": self._price_eks_cluster,
            "aws_ecs_service": self._price_ecs_service,
            # GCP
            "google_compute_instance": self._price_gcp_instance,
            # Azure
            "azurerm_virtual_machine": self._price_azure_vm,
            "azurerm_linux_virtual_machine": self._price_azure_vm,
            "azurerm_windows_virtual_machine": self._price_azure_vm,
        }

    @property
    def supported_types(self) -> List[str]:
        """Resource types with a pricing rule."""
        return sorted(self._rules)

    def estimate(self, plan: Plan) -> EstimationResult:
        """
        Estimate the cost impact of a parsed plan.

        Args:
            plan: Parsed Terraform plan

        Returns:
            EstimationResult with per-resource estimates and totals
        """
        return self.estimate_changes(plan.resource_changes)

    def estimate_changes(self, resource_changes: Iterable[ResourceChange]) -> EstimationResult:
        """
        Estimate the cost impact of a sequence of resource changes.

        Never raises on plan data: unknown classes fall back to the family
        baseline and unknown types are priced at 0 and listed in
        unsupported_types.

        Args:
            resource_changes: Resource changes in plan order

        Returns:
            EstimationResult with per-resource estimates and totals
        """
        result = EstimationResult()
        unsupported_seen = set()

        def mark_supported(resource_type: str, supported: bool) -> None:
            if not supported and resource_type not in unsupported_seen:
                unsupported_seen.add(resource_type)
                result.unsupported_types.append(resource_type)
                logger.debug("No pricing rule for resource type %s", resource_type)

        for change in resource_changes:
            action = change.action_label

            # Skip no-op changes
            if action in ("", NO_OP):
                continue

            has_create = change.has_action(CREATE)
            has_delete = change.has_action(DELETE)

            if has_create and not has_delete:
                price = self.estimate_resource_cost(change.type, change.after)
                monthly_cost = price.monthly_cost
                details = price.details
                result.created_resources += 1

            elif has_delete and not has_create:
                price = self.estimate_resource_cost(change.type, change.before)
                monthly_cost = -price.monthly_cost
                details = f"{price.details} (removed)"
                result.destroyed_resources += 1

            elif has_create and has_delete:
                old_price = self.estimate_resource_cost(change.type, change.before)
                price = self.estimate_resource_cost(change.type, change.after)
                monthly_cost = price.monthly_cost - old_price.monthly_cost
                details = f"{price.details} (replaced)"
                result.updated_resources += 1

            elif change.has_action(UPDATE):
                old_price = self.estimate_resource_cost(change.type, change.before)
                price = self.estimate_resource_cost(change.type, change.after)
                monthly_cost = price.monthly_cost - old_price.monthly_cost
                details = f"{price.details} (updated)"
                result.updated_resources += 1

            else:
                # e.g. "read" for data sources
                logger.debug("Ignoring %s with actions %s", change.address, action)
                continue

            mark_supported(change.type, price.supported)
            result.total_monthly_change += monthly_cost
            result.estimates.append(CostEstimate(
                resource_address=change.address,
                resource_type=change.type,
                action=action,
                monthly_cost=monthly_cost,
                details=details,
                supported=price.supported,
            ))

        result.total_monthly_cost = result.total_monthly_change

        logger.info(
            "Estimated %d resource change(s): %+.2f USD/month "
            "(created=%d, destroyed=%d, updated=%d, unsupported_types=%d)",
            len(result.estimates),
            result.total_monthly_change,
            result.created_resources,
            result.destroyed_resources,
            result.updated_resources,
            len(result.unsupported_types),
        )
        return result

    def estimate_resource_cost(
        self,
        resource_type: str,
        attrs: Optional[Dict[str, Any]]
    ) -> ResourcePrice:
        """
        Price one resource configuration.

        Args:
            resource_type: Terraform resource type (e.g., 'aws_instance')
            attrs: Resource attributes (before or after values)

        Returns:
            ResourcePrice with monthly cost, details and supported flag
        """
        if attrs is None:
            return ResourcePrice(0.0, "no attributes", False)

        rule = self._rules.get(resource_type)
        if rule is None:
            return UNSUPPORTED_PRICE
        return rule(attrs)

    def _hourly_to_monthly(self, hourly_rate: float) -> float:
        return hourly_rate * self.hours_per_month

    def _price_ec2_instance(self, attrs: Dict[str, Any]) -> ResourcePrice:
        fallback = self.catalog.fallback_class(PriceFamily.EC2_INSTANCE)
        instance_type = get_string_attr(attrs, "instance_type", fallback)
        hourly_rate = self.catalog.rate(PriceFamily.EC2_INSTANCE, instance_type)
        return ResourcePrice(self._hourly_to_monthly(hourly_rate), f"EC2 {instance_type}", True)

    def _price_rds_instance(self, attrs: Dict[str, Any]) -> ResourcePrice:
        fallback = self.catalog.fallback_class(PriceFamily.RDS_INSTANCE)
        instance_class = get_string_attr(attrs, "instance_class", fallback)
        hourly_rate = self.catalog.rate(PriceFamily.RDS_INSTANCE, instance_class)

        # Storage is billed at the general purpose EBS rate
        storage_gb = get_number_attr(attrs, "allocated_storage", 20)
        storage_rate = self.catalog.rate(
            PriceFamily.EBS_STORAGE,
            self.catalog.fallback_class(PriceFamily.EBS_STORAGE),
        )
        monthly_cost = self._hourly_to_monthly(hourly_rate) + storage_gb * storage_rate
        return ResourcePrice(
            monthly_cost,
            f"RDS {instance_class} + {storage_gb:.0f}GB storage",
            True,
        )

    def _price_ebs_volume(self, attrs: Dict[str, Any]) -> ResourcePrice:
        fallback = self.catalog.fallback_class(PriceFamily.EBS_STORAGE)
        volume_type = get_string_attr(attrs, "type", fallback)
        size_gb = get_number_attr(attrs, "size", 8)
        rate = self.catalog.rate(PriceFamily.EBS_STORAGE, volume_type)
        return ResourcePrice(size_gb * rate, f"EBS {volume_type} {size_gb:.0f}GB", True)

    def _price_load_balancer(self, attrs: Dict[str, Any]) -> ResourcePrice:
        # Hourly base only; LCU/NLCU charges depend on traffic
        lb_type = get_string_attr(attrs, "load_balancer_type", "application")
        if lb_type == "network":
            hourly_rate = self.catalog.rate(PriceFamily.LOAD_BALANCER, "nlb")
            return ResourcePrice(self._hourly_to_monthly(hourly_rate), "Network Load Balancer", True)
        hourly_rate = self.catalog.rate(PriceFamily.LOAD_BALANCER, "alb")
        return ResourcePrice(self._hourly_to_monthly(hourly_rate), "Application Load Balancer", True)

    def _price_classic_load_balancer(self, attrs: Dict[str, Any]) -> ResourcePrice:
        hourly_rate = self.catalog.rate(PriceFamily.LOAD_BALANCER, "classic")
        return ResourcePrice(self._hourly_to_monthly(hourly_rate), "Classic Load Balancer", True)

    def _price_nat_gateway(self, attrs: Dict[str, Any]) -> ResourcePrice:
        # Data processing charges are not included
        hourly_rate = self.catalog.rate(
            PriceFamily.NAT_GATEWAY,
            self.catalog.fallback_class(PriceFamily.NAT_GATEWAY),
        )
        return ResourcePrice(self._hourly_to_monthly(hourly_rate), "NAT Gateway", True)

    def _price_elasticache_cluster(self, attrs: Dict[str, Any]) -> ResourcePrice:
        fallback = self.catalog.fallback_class(PriceFamily.ELASTICACHE_NODE)
        node_type = get_string_attr(attrs, "node_type", fallback)
        num_nodes = get_number_attr(attrs, "num_cache_nodes", 1)
        hourly_rate = self.catalog.rate(PriceFamily.ELASTICACHE_NODE, node_type)
        return ResourcePrice(
            self._hourly_to_monthly(hourly_rate) * num_nodes,
            f"Elasticache {node_type} x{num_nodes:.0f}",
            True,
        )

    def _price_lambda_function(self, attrs: Dict[str, Any]) -> ResourcePrice:
        # Lambda is billed per request and GB-second; assume a fixed workload
        memory_mb = get_number_attr(attrs, "memory_size", 128)
        gb_second_rate = self.catalog.rate(PriceFamily.LAMBDA_COMPUTE, "gb_second")
        gb_seconds = (memory_mb / 1024) * LAMBDA_AVERAGE_DURATION_SECONDS * LAMBDA_MONTHLY_INVOCATIONS
        return ResourcePrice(
            gb_seconds * gb_second_rate,
            f"Lambda {memory_mb:.0f}MB (estimated)",
            True,
        )

    def _price_s3_bucket(self, attrs: Dict[str, Any]) -> ResourcePrice:
        # Real cost depends on stored bytes and requests
        return ResourcePrice(
            self.catalog.rate(PriceFamily.S3_BUCKET, "bucket"),
            "S3 Bucket (minimal estimate)",
            True,
        )

    def _price_eks_cluster(self, attrs: Dict[str, Any]) -> ResourcePrice:
        hourly_rate = self.catalog.rate(PriceFamily.EKS_CLUSTER, "control_plane")
        return ResourcePrice(self._hourly_to_monthly(hourly_rate), "EKS Cluster", True)

    def _price_ecs_service(self, attrs: Dict[str, Any]) -> ResourcePrice:
        # ECS itself is free; price the tasks as Fargate with a fixed task shape
        desired_count = get_number_attr(attrs, "desired_count", 1)
        task_hourly_rate = (
            FARGATE_TASK_VCPU * self.catalog.rate(PriceFamily.FARGATE_TASK, "vcpu_hour")
            + FARGATE_TASK_MEMORY_GB * self.catalog.rate(PriceFamily.FARGATE_TASK, "gb_hour")
        )
        return ResourcePrice(
            desired_count * self._hourly_to_monthly(task_hourly_rate),
            f"ECS Service ({desired_count:.0f} tasks, Fargate estimate)",
            True,
        )

    def _price_gcp_instance(self, attrs: Dict[str, Any]) -> ResourcePrice:
        fallback = self.catalog.fallback_class(PriceFamily.GCP_INSTANCE)
        machine_type = get_string_attr(attrs, "machine_type", fallback)
        hourly_rate = self.catalog.rate(PriceFamily.GCP_INSTANCE, machine_type)
        return ResourcePrice(self._hourly_to_monthly(hourly_rate), f"GCP {machine_type}", True)

    def _price_azure_vm(self, attrs: Dict[str, Any]) -> ResourcePrice:
        # azurerm_linux/windows_virtual_machine use "size", the legacy resource "vm_size"
        fallback = self.catalog.fallback_class(PriceFamily.AZURE_VM)
        size = get_string_attr(attrs, "size", "") or get_string_attr(attrs, "vm_size", "") or fallback
        hourly_rate = self.catalog.rate(PriceFamily.AZURE_VM, size)
        return ResourcePrice(self._hourly_to_monthly(hourly_rate), f"Azure {size}", True)


# Global singleton instance
_plan_estimator: Optional[PlanEstimator] = None


def get_plan_estimator() -> PlanEstimator:
    """
    Get the global plan estimator instance.

    The estimator holds no per-call state, so one instance serves all requests.

    Returns:
        PlanEstimator instance
    """
    global _plan_estimator
    if _plan_estimator is None:
        _plan_estimator = PlanEstimator()
    return _plan_estimator
