# ============================================================================
# schedulux/api/v1/schedule_rules.py
# Vendor schedule management - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query, Response, status

from schedulux.api.dependencies import get_store
from schedulux.schemas.schedule_rule import ScheduleRuleCreate, ScheduleRulePatch
from schedulux.services.schedule_rule.schedule_rule_service import ScheduleRuleService
from schedulux.storage.base import SchedulingStore

router = APIRouter(prefix="/storefronts/{storefront_id}/schedule-rules", tags=["schedule-rules"])


@router.get("")
def list_rules(
        storefront_id: int = Path(..., description="The storefront ID"),
        include_inactive: bool = Query(False, description="Include deactivated rules"),
        store: SchedulingStore = Depends(get_store)
):
    """List the storefront's schedule rules, highest priority first"""
    rules = ScheduleRuleService.list_rules(store, storefront_id, include_inactive=include_inactive)
    return [rule.to_dict() for rule in rules]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_rule(
        data: ScheduleRuleCreate,
        storefront_id: int = Path(..., description="The storefront ID"),
        vendor_id: int = Query(..., description="The vendor owning the storefront"),
        store: SchedulingStore = Depends(get_store)
):
    """Add a weekly, daily or monthly rule"""
    rule = ScheduleRuleService.create_rule(store, storefront_id, vendor_id, data)
    return rule.to_dict()


@router.patch("/{rule_id}")
def update_rule(
        patch: ScheduleRulePatch,
        storefront_id: int = Path(..., description="The storefront ID"),
        rule_id: int = Path(..., description="The schedule rule ID"),
        vendor_id: int = Query(..., description="The vendor owning the storefront"),
        store: SchedulingStore = Depends(get_store)
):
    """Partially update a rule; unknown fields are rejected"""
    rule = ScheduleRuleService.update_rule(store, storefront_id, rule_id, vendor_id, patch)
    return rule.to_dict()


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(
        storefront_id: int = Path(..., description="The storefront ID"),
        rule_id: int = Path(..., description="The schedule rule ID"),
        vendor_id: int = Query(..., description="The vendor owning the storefront"),
        store: SchedulingStore = Depends(get_store)
):
    """Soft delete a rule"""
    ScheduleRuleService.delete_rule(store, storefront_id, rule_id, vendor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
