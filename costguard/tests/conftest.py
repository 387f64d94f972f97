"""
Shared pytest fixtures for cost guard tests.
"""

import sys
import json
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
from fastapi.testclient import TestClient
from costguard.main import app
from costguard.domain.plan_models import ResourceChange
from costguard.pricing.catalog import create_default_catalog
from costguard.services.plan_estimator import PlanEstimator


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def catalog():
    """Default price catalog."""
    return create_default_catalog()


@pytest.fixture
def estimator(catalog):
    """Plan estimator over the default catalog."""
    return PlanEstimator(catalog=catalog)


@pytest.fixture
def make_change():
    """Factory for resource changes."""
    def _make(resource_type, actions, before=None, after=None, address=None):
        return ResourceChange(
            address=address or f"{resource_type}.this",
            type=resource_type,
            actions=list(actions),
            before=before,
            after=after,
        )
    return _make


@pytest.fixture
def sample_plan_document():
    """Sample `terraform show -json` document."""
    return {
        "format_version": "1.2",
        "terraform_version": "1.7.5",
        "planned_values": {
            "root_module": {
                "resources": [
                    {
                        "address": "aws_instance.web",
                        "mode": "managed",
                        "type": "aws_instance",
                        "name": "web",
                        "provider_name": "registry.terraform.io/hashicorp/aws",
                        "values": {"instance_type": "t3.large"}
                    }
                ],
                "child_modules": [
                    {
                        "resources": [
                            {
                                "address": "module.db.aws_db_instance.main",
                                "mode": "managed",
                                "type": "aws_db_instance",
                                "name": "main",
                                "provider_name": "registry.terraform.io/hashicorp/aws",
                                "values": {"instance_class": "db.t3.small", "allocated_storage": 50}
                            }
                        ]
                    }
                ]
            }
        },
        "resource_changes": [
            {
                "address": "aws_instance.web",
                "mode": "managed",
                "type": "aws_instance",
                "name": "web",
                "provider_name": "registry.terraform.io/hashicorp/aws",
                "change": {
                    "actions": ["create"],
                    "before": None,
                    "after": {"instance_type": "t3.large"}
                }
            },
            {
                "address": "module.db.aws_db_instance.main",
                "mode": "managed",
                "type": "aws_db_instance",
                "name": "main",
                "provider_name": "registry.terraform.io/hashicorp/aws",
                "change": {
                    "actions": ["update"],
                    "before": {"instance_class": "db.t3.micro", "allocated_storage": 20},
                    "after": {"instance_class": "db.t3.small", "allocated_storage": 50}
                }
            },
            {
                "address": "aws_ebs_volume.old",
                "mode": "managed",
                "type": "aws_ebs_volume",
                "name": "old",
                "provider_name": "registry.terraform.io/hashicorp/aws",
                "change": {
                    "actions": ["delete"],
                    "before": {"type": "gp2", "size": 100},
                    "after": None
                }
            },
            {
                "address": "aws_iam_role.app",
                "mode": "managed",
                "type": "aws_iam_role",
                "name": "app",
                "provider_name": "registry.terraform.io/hashicorp/aws",
                "change": {
                    "actions": ["no-op"],
                    "before": {"name": "app"},
                    "after": {"name": "app"}
                }
            }
        ]
    }


@pytest.fixture
def sample_plan_json(sample_plan_document):
    """Sample plan document serialized to JSON."""
    return json.dumps(sample_plan_document)


@pytest.fixture
def sample_plan_file(tmp_path, sample_plan_json):
    """Sample plan document written to disk."""
    path = tmp_path / "plan.json"
    path.write_text(sample_plan_json)
    return path
