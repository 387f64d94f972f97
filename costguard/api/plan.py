"""
API routes for Terraform plan cost estimation.
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, Request, HTTPException, UploadFile, File, Query
from pydantic import BaseModel, Field
import logging

from costguard.core.config import config
from costguard.domain.cost_models import EstimationResult
from costguard.services.cost_report import evaluate_threshold, format_cost_summary
from costguard.services.plan_estimator import get_plan_estimator
from costguard.services.plan_parser import PlanParseError, parse_plan_json


logger = logging.getLogger(__name__)
router = APIRouter()


class ThresholdDecisionModel(BaseModel):
    """Whether applying the plan needs explicit confirmation."""
    requires_confirmation: bool = Field(..., description="True if the cost change exceeds the threshold")
    threshold_usd: Optional[float] = Field(None, description="Threshold used for the decision")
    message: str = Field(..., description="Human-readable decision message")


class PlanEstimateResponse(BaseModel):
    """Response model for plan cost estimation."""
    status: str
    estimate: Dict[str, Any]
    decision: ThresholdDecisionModel
    summary: str


class CatalogResponse(BaseModel):
    """Response model for the price catalog."""
    status: str
    currency: str
    hours_per_month: int
    supported_types: list
    families: Dict[str, Any]


def _build_response(
    result: EstimationResult,
    threshold: Optional[float],
    details: bool
) -> PlanEstimateResponse:
    if threshold is None:
        threshold = config.COST_THRESHOLD_USD
    decision = evaluate_threshold(result.total_monthly_change, threshold)
    return PlanEstimateResponse(
        status="ok",
        estimate=result.to_dict(),
        decision=ThresholdDecisionModel(
            requires_confirmation=decision.requires_confirmation,
            threshold_usd=threshold,
            message=decision.message.strip(),
        ),
        summary=format_cost_summary(result, show_details=details),
    )


def _estimate_plan_bytes(
    raw_plan: bytes,
    threshold: Optional[float],
    details: bool,
    source: str
) -> PlanEstimateResponse:
    if not raw_plan:
        raise HTTPException(status_code=400, detail="Plan document is empty")

    logger.info("estimate_plan: Stage=parse - source=%s, bytes=%d", source, len(raw_plan))
    try:
        plan = parse_plan_json(raw_plan)
    except PlanParseError as error:
        logger.info("estimate_plan: Stage=parse - PlanParseError - %s", error)
        raise HTTPException(
            status_code=400,
            detail=f"Invalid plan document: {str(error)}"
        ) from error

    result = get_plan_estimator().estimate(plan)
    logger.info(
        "estimate_plan: Stage=pricing - Success - total_change=%.2f, estimates=%d, unsupported=%d",
        result.total_monthly_change,
        len(result.estimates),
        len(result.unsupported_types),
    )
    return _build_response(result, threshold, details)


@router.post("/api/plan/estimate", response_model=PlanEstimateResponse)
async def estimate_plan(
    request: Request,
    threshold: Optional[float] = Query(None, ge=0, description="Auto-approve threshold in USD/month"),
    details: bool = Query(False, description="Include a per-resource breakdown in the summary")
) -> PlanEstimateResponse:
    """
    Estimate the monthly cost impact of a Terraform plan.

    The request body is the JSON document produced by
    `terraform show -json <planfile>`.

    Args:
        request: FastAPI request object
        threshold: Optional auto-approve threshold (defaults to COST_THRESHOLD_USD)
        details: Include per-resource lines in the summary

    Returns:
        Estimate, threshold decision and a text summary

    Raises:
        HTTPException: If the plan document is empty or invalid
    """
    try:
        raw_plan = await request.body()
        return _estimate_plan_bytes(raw_plan, threshold, details, source="body")
    except HTTPException:
        # Re-raise HTTP exceptions as-is
        raise
    except Exception as error:
        logger.error("estimate_plan: Unexpected error - %s: %s",
                     type(error).__name__, str(error), exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred while estimating costs"
        ) from error


@router.post("/api/plan/estimate/upload", response_model=PlanEstimateResponse)
async def estimate_plan_upload(
    plan_file: UploadFile = File(..., description="JSON plan file"),
    threshold: Optional[float] = Query(None, ge=0, description="Auto-approve threshold in USD/month"),
    details: bool = Query(False, description="Include a per-resource breakdown in the summary")
) -> PlanEstimateResponse:
    """
    Estimate the monthly cost impact of an uploaded Terraform plan JSON file.

    Args:
        plan_file: Uploaded `terraform show -json` output
        threshold: Optional auto-approve threshold (defaults to COST_THRESHOLD_USD)
        details: Include per-resource lines in the summary

    Returns:
        Estimate, threshold decision and a text summary

    Raises:
        HTTPException: If the file is too large, empty or not a valid plan
    """
    try:
        raw_plan = await plan_file.read()
        if len(raw_plan) > config.MAX_PLAN_BODY_SIZE:
            raise HTTPException(status_code=413, detail="Plan file exceeds allowed size")
        return _estimate_plan_bytes(
            raw_plan, threshold, details, source=plan_file.filename or "upload"
        )
    except HTTPException:
        raise
    except Exception as error:
        logger.error("estimate_plan_upload: Unexpected error - %s: %s",
                     type(error).__name__, str(error), exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred while estimating costs"
        ) from error


@router.get("/api/pricing/catalog", response_model=CatalogResponse)
async def get_pricing_catalog() -> CatalogResponse:
    """
    Return the static price table used for estimates.

    Returns:
        Families with their fallback class and unit rates
    """
    estimator = get_plan_estimator()
    return CatalogResponse(
        status="ok",
        currency=config.CURRENCY,
        hours_per_month=estimator.hours_per_month,
        supported_types=estimator.supported_types,
        families=estimator.catalog.to_dict(),
    )
