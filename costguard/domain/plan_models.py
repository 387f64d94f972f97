"""
Domain models for Terraform plans.
Mirrors the parts of `terraform show -json` output the estimator consumes.
"""
from typing import List, Dict, Any, Optional, Iterator
from dataclasses import dataclass, field


CREATE = "create"
DELETE = "delete"
UPDATE = "update"
NO_OP = "no-op"


@dataclass
class PlannedResource:
    """A resource value inside the planned_values / prior_state module tree."""
    address: str
    mode: str
    type: str
    name: str
    provider_name: str
    values: Optional[Dict[str, Any]]


@dataclass
class PlannedModule:
    """A module node with its resources and nested child modules."""
    resources: List[PlannedResource] = field(default_factory=list)
    child_modules: List["PlannedModule"] = field(default_factory=list)

    def iter_resources(self) -> Iterator[PlannedResource]:
        """Yield resources of this module, then of each child module (depth-first)."""
        for resource in self.resources:
            yield resource
        for child in self.child_modules:
            yield from child.iter_resources()


@dataclass
class ResourceChange:
    """A single planned change to one resource."""
    address: str
    type: str
    actions: List[str]
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    mode: str = "managed"
    name: str = ""
    provider_name: str = ""

    @property
    def action_label(self) -> str:
        """Actions joined with '+', e.g. 'delete+create' for a replacement."""
        return "+".join(self.actions)

    def has_action(self, action: str) -> bool:
        return action in self.actions

    @property
    def is_replacement(self) -> bool:
        return self.has_action(CREATE) and self.has_action(DELETE)


@dataclass
class Plan:
    """Parsed Terraform plan."""
    format_version: str = ""
    terraform_version: str = ""
    planned_values: PlannedModule = field(default_factory=PlannedModule)
    resource_changes: List[ResourceChange] = field(default_factory=list)
    prior_state: Optional[PlannedModule] = None

    def created_resources(self) -> List[ResourceChange]:
        """Changes that create a resource (including replacements)."""
        return [rc for rc in self.resource_changes if rc.has_action(CREATE)]

    def destroyed_resources(self) -> List[ResourceChange]:
        """Changes that delete a resource (including replacements)."""
        return [rc for rc in self.resource_changes if rc.has_action(DELETE)]

    def updated_resources(self) -> List[ResourceChange]:
        """Changes updated in-place."""
        return [rc for rc in self.resource_changes if rc.has_action(UPDATE)]

    def replaced_resources(self) -> List[ResourceChange]:
        """Changes that destroy and re-create a resource."""
        return [rc for rc in self.resource_changes if rc.is_replacement]

    def planned_resources(self) -> List[PlannedResource]:
        """All planned resource values, flattened across child modules."""
        return list(self.planned_values.iter_resources())
