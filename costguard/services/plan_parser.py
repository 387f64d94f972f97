"""
Terraform plan parser.
Decodes the JSON document produced by `terraform show -json <planfile>`.
"""
from typing import Dict, Any, List, Optional, Union
from pathlib import Path
import json
import logging

from costguard.domain.plan_models import Plan, PlannedModule, PlannedResource, ResourceChange


logger = logging.getLogger(__name__)


class PlanParseError(Exception):
    """Raised when a plan document cannot be read or decoded."""
    pass


def _reject_constant(name: str) -> float:
    # NaN, Infinity and -Infinity are not valid JSON
    raise ValueError(f"invalid JSON constant: {name}")


def parse_plan_file(path: Union[str, Path]) -> Plan:
    """
    Read and parse a Terraform plan JSON file.

    Args:
        path: Path to the JSON plan file

    Returns:
        Parsed Plan

    Raises:
        PlanParseError: If the file cannot be read or is not a valid plan
    """
    try:
        data = Path(path).read_bytes()
    except OSError as error:
        raise PlanParseError(f"failed to read plan file: {error}") from error

    return parse_plan_json(data)


def parse_plan_json(data: Union[str, bytes]) -> Plan:
    """
    Parse Terraform plan JSON data.

    Args:
        data: JSON document as text or UTF-8 bytes

    Returns:
        Parsed Plan

    Raises:
        PlanParseError: If the data is not valid JSON or not shaped like a plan
    """
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        document = json.loads(data, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as error:
        # ValueError covers UnicodeDecodeError and json.JSONDecodeError
        raise PlanParseError(f"failed to parse plan JSON: {error}") from error

    if not isinstance(document, dict):
        raise PlanParseError(
            f"failed to parse plan JSON: expected an object, got {type(document).__name__}"
        )

    try:
        plan = _build_plan(document)
    except (TypeError, ValueError, RecursionError) as error:
        raise PlanParseError(f"failed to parse plan JSON: {error}") from error

    logger.debug(
        "Parsed plan (format %s, terraform %s) with %d resource change(s)",
        plan.format_version or "unknown",
        plan.terraform_version or "unknown",
        len(plan.resource_changes),
    )
    return plan


def _build_plan(document: Dict[str, Any]) -> Plan:
    changes = document.get("resource_changes") or []
    if not isinstance(changes, list):
        raise TypeError("resource_changes must be a list")

    planned_values = _expect_object(document.get("planned_values"), "planned_values") or {}
    prior_state = _expect_object(document.get("prior_state"), "prior_state")

    prior_module = None
    if prior_state is not None:
        state_values = _expect_object(prior_state.get("values"), "prior_state.values") or {}
        prior_module = _build_module(state_values.get("root_module"), "prior_state.values.root_module")

    return Plan(
        format_version=_optional_str(document.get("format_version"), "format_version"),
        terraform_version=_optional_str(document.get("terraform_version"), "terraform_version"),
        planned_values=_build_module(planned_values.get("root_module"), "planned_values.root_module"),
        resource_changes=[
            _build_resource_change(entry, index) for index, entry in enumerate(changes)
        ],
        prior_state=prior_module,
    )


def _build_resource_change(entry: Any, index: int) -> ResourceChange:
    where = f"resource_changes[{index}]"
    if not isinstance(entry, dict):
        raise TypeError(f"{where} must be an object")

    change = entry.get("change")
    if not isinstance(change, dict):
        raise TypeError(f"{where}.change must be an object")

    actions = change.get("actions") or []
    if not isinstance(actions, list) or not all(isinstance(a, str) for a in actions):
        raise TypeError(f"{where}.change.actions must be a list of strings")

    return ResourceChange(
        address=_optional_str(entry.get("address"), f"{where}.address"),
        type=_optional_str(entry.get("type"), f"{where}.type"),
        actions=list(actions),
        before=_expect_object(change.get("before"), f"{where}.change.before"),
        after=_expect_object(change.get("after"), f"{where}.change.after"),
        mode=_optional_str(entry.get("mode"), f"{where}.mode") or "managed",
        name=_optional_str(entry.get("name"), f"{where}.name"),
        provider_name=_optional_str(entry.get("provider_name"), f"{where}.provider_name"),
    )


def _build_module(node: Any, where: str) -> PlannedModule:
    node = _expect_object(node, where) or {}

    resources: List[PlannedResource] = []
    for index, entry in enumerate(node.get("resources") or []):
        entry_where = f"{where}.resources[{index}]"
        if not isinstance(entry, dict):
            raise TypeError(f"{entry_where} must be an object")
        resources.append(PlannedResource(
            address=_optional_str(entry.get("address"), f"{entry_where}.address"),
            mode=_optional_str(entry.get("mode"), f"{entry_where}.mode"),
            type=_optional_str(entry.get("type"), f"{entry_where}.type"),
            name=_optional_str(entry.get("name"), f"{entry_where}.name"),
            provider_name=_optional_str(entry.get("provider_name"), f"{entry_where}.provider_name"),
            values=_expect_object(entry.get("values"), f"{entry_where}.values"),
        ))

    child_modules = [
        _build_module(child, f"{where}.child_modules[{index}]")
        for index, child in enumerate(node.get("child_modules") or [])
    ]
    return PlannedModule(resources=resources, child_modules=child_modules)


def _expect_object(value: Any, where: str) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise TypeError(f"{where} must be an object or null")
    return value


def _optional_str(value: Any, where: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{where} must be a string")
    return value
