"""
Tests for plan change classification and aggregation.
"""

import copy

import pytest
from costguard.pricing.catalog import PriceFamily
from costguard.services.plan_estimator import PlanEstimator, get_plan_estimator
from costguard.services.plan_parser import parse_plan_json


HOURS = 730


def test_create_smallest_instance(estimator, make_change):
    """Creating a t3.nano costs its hourly rate x 730."""
    change = make_change("aws_instance", ["create"], after={"instance_type": "t3.nano"})

    result = estimator.estimate_changes([change])

    assert result.estimates[0].monthly_cost == 0.0052 * HOURS
    assert result.total_monthly_change == 0.0052 * HOURS
    assert result.created_resources == 1
    assert result.destroyed_resources == 0
    assert result.updated_resources == 0
    assert result.estimates[0].details == "EC2 t3.nano"
    assert result.estimates[0].action == "create"


def test_replace_instance_counts_as_update(estimator, make_change):
    """delete+create yields rate(B) - rate(A) and increments updated only."""
    change = make_change(
        "aws_instance",
        ["delete", "create"],
        before={"instance_type": "t3.micro"},
        after={"instance_type": "m5.large"},
    )

    result = estimator.estimate_changes([change])

    assert result.total_monthly_change == pytest.approx(0.096 * HOURS - 0.0104 * HOURS)
    assert result.updated_resources == 1
    assert result.created_resources == 0
    assert result.destroyed_resources == 0
    assert result.estimates[0].action == "delete+create"
    assert result.estimates[0].details == "EC2 m5.large (replaced)"


def test_create_before_destroy_replacement(estimator, make_change):
    """create+delete ordering is also a replacement."""
    change = make_change(
        "aws_instance",
        ["create", "delete"],
        before={"instance_type": "m5.large"},
        after={"instance_type": "t3.micro"},
    )

    result = estimator.estimate_changes([change])

    assert result.total_monthly_change == pytest.approx((0.0104 - 0.096) * HOURS)
    assert result.total_monthly_change < 0
    assert result.updated_resources == 1
    assert result.estimates[0].action == "create+delete"


def test_destroy_volume(estimator, make_change):
    """Destroying a 100GB gp2 volume saves 100 x gp2 rate."""
    change = make_change("aws_ebs_volume", ["delete"], before={"type": "gp2", "size": 100})

    result = estimator.estimate_changes([change])

    assert result.total_monthly_change == pytest.approx(-(100 * 0.10))
    assert result.destroyed_resources == 1
    assert result.created_resources == 0
    assert result.estimates[0].details == "EBS gp2 100GB (removed)"


def test_update_in_place(estimator, make_change):
    """In-place updates price after minus before."""
    change = make_change(
        "aws_elasticache_cluster",
        ["update"],
        before={"node_type": "cache.t3.micro", "num_cache_nodes": 1},
        after={"node_type": "cache.t3.micro", "num_cache_nodes": 3},
    )

    result = estimator.estimate_changes([change])

    assert result.total_monthly_change == pytest.approx(0.017 * HOURS * 2)
    assert result.updated_resources == 1
    assert result.estimates[0].details == "Elasticache cache.t3.micro x3 (updated)"


def test_unsupported_type_still_counted(estimator, make_change):
    """An unknown type costs 0, is flagged once and still counts as created."""
    change = make_change("aws_quantum_computer", ["create"], after={"qubits": 5})

    result = estimator.estimate_changes([change])

    assert result.total_monthly_change == 0
    assert result.created_resources == 1
    assert result.unsupported_types == ["aws_quantum_computer"]
    assert result.estimates[0].supported is False
    assert result.estimates[0].details == "unsupported resource type"


@pytest.mark.parametrize("actions", [[], ["no-op"]])
def test_no_op_changes_are_skipped(estimator, make_change, actions):
    """Empty and no-op action lists produce nothing."""
    change = make_change("aws_instance", actions, before={}, after={})

    result = estimator.estimate_changes([change])

    assert result.estimates == []
    assert result.total_monthly_change == 0
    assert result.created_resources == 0
    assert result.destroyed_resources == 0
    assert result.updated_resources == 0
    assert result.unsupported_types == []


def test_unrecognized_actions_produce_no_estimate(estimator, make_change):
    """Actions outside create/delete/update (e.g. read) are ignored."""
    change = make_change("aws_quantum_computer", ["read"], after={"id": "x"})

    result = estimator.estimate_changes([change])

    assert result.estimates == []
    assert result.unsupported_types == []
    assert result.created_resources + result.destroyed_resources + result.updated_resources == 0


def test_unsupported_types_deduplicated_in_first_seen_order(estimator, make_change):
    """Each unpriced type appears once, in order of first occurrence."""
    changes = [
        make_change("aws_sqs_queue", ["create"], after={}, address="aws_sqs_queue.a"),
        make_change("aws_sns_topic", ["create"], after={}, address="aws_sns_topic.a"),
        make_change("aws_sqs_queue", ["delete"], before={}, address="aws_sqs_queue.b"),
        make_change("aws_instance", ["create"], after={}, address="aws_instance.a"),
        make_change("aws_sns_topic", ["update"], before={}, after={}, address="aws_sns_topic.b"),
        make_change("aws_sqs_queue", ["delete", "create"], before={}, after={}, address="aws_sqs_queue.c"),
    ]

    result = estimator.estimate_changes(changes)

    assert result.unsupported_types == ["aws_sqs_queue", "aws_sns_topic"]
    assert len(result.estimates) == 6


def test_estimates_keep_input_order(estimator, make_change):
    changes = [
        make_change("aws_nat_gateway", ["create"], after={}, address="aws_nat_gateway.b"),
        make_change("aws_instance", ["no-op"], before={}, after={}, address="aws_instance.skip"),
        make_change("aws_eks_cluster", ["delete"], before={}, address="aws_eks_cluster.a"),
        make_change("aws_s3_bucket", ["create"], after={}, address="aws_s3_bucket.c"),
    ]

    result = estimator.estimate_changes(changes)

    assert [e.resource_address for e in result.estimates] == [
        "aws_nat_gateway.b",
        "aws_eks_cluster.a",
        "aws_s3_bucket.c",
    ]


def test_total_equals_sum_of_estimates(estimator, make_change):
    """Total cost and total change are both the sum of the estimate deltas."""
    changes = [
        make_change("aws_instance", ["create"], after={"instance_type": "c5.xlarge"}),
        make_change("aws_db_instance", ["delete"], before={"instance_class": "db.m5.large"}),
        make_change("aws_ebs_volume", ["update"], before={"size": 10}, after={"size": 50}),
        make_change("aws_lambda_function", ["delete", "create"], before={"memory_size": 128},
                    after={"memory_size": 512}),
    ]

    result = estimator.estimate_changes(changes)

    assert result.total_monthly_change == pytest.approx(sum(e.monthly_cost for e in result.estimates))
    assert result.total_monthly_cost == result.total_monthly_change


def test_estimate_is_idempotent(estimator, sample_plan_json):
    """Two calls on the same input give identical results and leave input untouched."""
    plan = parse_plan_json(sample_plan_json)
    snapshot = copy.deepcopy(plan)

    first = estimator.estimate(plan)
    second = estimator.estimate(plan)

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert plan == snapshot


def test_sample_plan_totals(estimator, sample_plan_json):
    """Create, update, delete and no-op changes aggregate correctly."""
    result = estimator.estimate(parse_plan_json(sample_plan_json))

    web = 0.0832 * HOURS
    db = (0.034 * HOURS + 50 * 0.10) - (0.017 * HOURS + 20 * 0.10)
    volume = -(100 * 0.10)

    assert result.created_resources == 1
    assert result.updated_resources == 1
    assert result.destroyed_resources == 1
    assert len(result.estimates) == 3
    assert result.total_monthly_change == pytest.approx(web + db + volume)
    assert result.is_increase
    assert not result.has_unsupported_types


def test_missing_attributes_are_flagged(estimator, make_change):
    """A create without after values is priced at 0 and flagged."""
    change = make_change("aws_instance", ["create"], after=None)

    result = estimator.estimate_changes([change])

    assert result.total_monthly_change == 0
    assert result.created_resources == 1
    assert result.unsupported_types == ["aws_instance"]
    assert result.estimates[0].details == "no attributes"


def test_custom_catalog_is_used(make_change):
    """The estimator prices from the catalog it owns."""
    from costguard.pricing.catalog import PriceCatalog, DEFAULT_PRICES

    rates = {family: dict(table) for family, (_, table) in DEFAULT_PRICES.items()}
    rates[PriceFamily.EC2_INSTANCE]["t3.micro"] = 1.0
    fallbacks = {family: fallback for family, (fallback, _) in DEFAULT_PRICES.items()}
    estimator = PlanEstimator(catalog=PriceCatalog(rates=rates, fallbacks=fallbacks))

    result = estimator.estimate_changes([make_change("aws_instance", ["create"], after={})])

    assert result.total_monthly_change == HOURS


def test_to_dict_rounds_costs(estimator, make_change):
    change = make_change("aws_instance", ["create"], after={"instance_type": "t3.nano"})

    data = estimator.estimate_changes([change]).to_dict()

    assert data["total_monthly_change_usd"] == 3.8
    assert data["total_monthly_cost_usd"] == 3.8
    assert data["estimates"][0]["monthly_cost_usd"] == 3.8
    assert data["estimates"][0]["resource_address"] == "aws_instance.this"
    assert data["currency"] == "USD"


def test_global_estimator_is_shared():
    assert get_plan_estimator() is get_plan_estimator()


@pytest.mark.parametrize("resource_type, attrs", [
    ("aws_ebs_volume", {"type": "gp2", "size": -100}),
    ("aws_elasticache_cluster", {"num_cache_nodes": -3}),
    ("aws_ecs_service", {"desired_count": -2}),
    ("aws_db_instance", {"allocated_storage": float("-inf")}),
])
def test_create_never_saves_money(estimator, make_change, resource_type, attrs):
    """Negative or non-finite sizes and counts fall back to the defaults, so creates cost >= 0."""
    result = estimator.estimate_changes([make_change(resource_type, ["create"], after=attrs)])

    assert result.total_monthly_change > 0
    assert result.total_monthly_change == estimator.estimate_resource_cost(resource_type, {}).monthly_cost


def test_non_finite_size_does_not_poison_totals(estimator, make_change):
    change = make_change("aws_ebs_volume", ["create"], after={"size": float("nan")})

    result = estimator.estimate_changes([change])

    assert result.total_monthly_change == pytest.approx(8 * 0.10)
    assert result.to_dict()["total_monthly_change_usd"] == 0.8
