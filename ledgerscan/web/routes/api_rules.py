"""API routes for managing extraction rules."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerscan.core.config import settings
from ledgerscan.core.database import get_db
from ledgerscan.domain.rules.models import Rule
from ledgerscan.domain.rules.repository import RuleRepository
from ledgerscan.domain.rules.schemas import RuleCreate, RuleOut, RuleToggleRequest, RuleUpdate
from ledgerscan.domain.scanning.matcher import RuleMatcher
from ledgerscan.domain.scanning.schemas import (
    PatternSuggestions,
    RuleTestRequest,
    RuleTestResponse,
    SuggestRequest,
)
from ledgerscan.domain.scanning.skip_filter import collect_skip_patterns, should_skip
from ledgerscan.domain.scanning.suggest import suggest_patterns

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_rule(rule_id: int, repo: RuleRepository) -> Rule:
    """Return the rule or raise 404."""
    rule = await repo.get(rule_id)
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule not found")
    return rule


@router.get("", response_model=list[RuleOut])
async def list_rules(db: AsyncSession = Depends(get_db)) -> list[Rule]:
    """Return every stored rule."""
    return await RuleRepository(db).get_all()


@router.post("", response_model=RuleOut, status_code=status.HTTP_201_CREATED)
async def create_rule(payload: RuleCreate, db: AsyncSession = Depends(get_db)) -> Rule:
    return await RuleRepository(db).add(Rule(**payload.to_model_kwargs()))


@router.put("/{rule_id}", response_model=RuleOut)
async def update_rule(
    rule_id: int,
    payload: RuleUpdate,
    db: AsyncSession = Depends(get_db),
) -> Rule:
    """Update a rule; the result must still be usable when enabled."""
    repo = RuleRepository(db)
    rule = await _get_rule(rule_id, repo)

    update_data = payload.to_model_kwargs()
    if not update_data:
        return rule

    for field, value in update_data.items():
        setattr(rule, field, value)

    if rule.enabled and (not rule.sender_match or not rule.amount_regex):
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An enabled rule needs sender_match and amount_regex patterns",
        )
    return await repo.update(rule)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(rule_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    if not await RuleRepository(db).delete(rule_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{rule_id}/toggle", response_model=RuleOut)
async def toggle_rule(
    rule_id: int,
    payload: RuleToggleRequest,
    db: AsyncSession = Depends(get_db),
) -> Rule:
    rule = await RuleRepository(db).set_enabled(rule_id, payload.enabled)
    if rule is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule not found")
    logger.info("Rule %s %s", rule_id, "enabled" if payload.enabled else "disabled")
    return rule


@router.post("/test", response_model=RuleTestResponse)
async def test_rules(payload: RuleTestRequest, db: AsyncSession = Depends(get_db)) -> RuleTestResponse:
    """Dry-run a message against stored or supplied rules. Nothing is persisted."""
    if payload.rules is not None:
        rules = [Rule(**rule.to_model_kwargs()) for rule in payload.rules]
    else:
        rules = await RuleRepository(db).get_all()

    message = payload.message
    if message.source.value in settings.global_skip_sources and should_skip(
        message.text, collect_skip_patterns(rules)
    ):
        return RuleTestResponse(matched=False, globally_skipped=True)

    attempt = RuleMatcher().evaluate(message, rules)
    result = attempt.result
    if result is None:
        return RuleTestResponse(matched=False, errors=attempt.errors)

    return RuleTestResponse(
        matched=True,
        rule_id=result.rule.id,
        rule_name=result.rule.name,
        transaction_type=result.transaction_type,
        amount=result.amount,
        merchant_name=result.merchant_name,
        payment_method=result.payment_method,
        date=result.date or message.date,
        errors=result.errors,
    )


@router.post("/suggest", response_model=PatternSuggestions)
async def suggest_rule_patterns(payload: SuggestRequest) -> PatternSuggestions:
    """Suggest starter patterns from a sample message."""
    return suggest_patterns(payload.text)
