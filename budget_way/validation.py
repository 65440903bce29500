"""Boundary validation for engine input.

Everything here runs before any computation so that an allocation is never
produced, even partially, from invalid input.
"""

from __future__ import annotations

import dataclasses
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Set, Tuple, Union

from .errors import InvalidInput
from .models import (
    AllocationStrategy,
    DebtSnapshot,
    Envelope,
    EnvelopeSubtype,
    PriorityTier,
    SuggestionType,
    parse_tag,
)
from .money import ZERO, MoneyLike, to_money

EnvelopeLike = Union[Envelope, Mapping[str, Any]]


def _non_negative(value: MoneyLike, field: str) -> Decimal:
    amount = to_money(value, field)
    if amount < ZERO:
        raise InvalidInput(f"{field} cannot be negative, got {amount}")
    return amount


def validate_balance(available_balance: MoneyLike) -> Decimal:
    """Return the available balance as money, rejecting negative values."""
    return _non_negative(available_balance, 'available_balance')


def validate_envelope(envelope: EnvelopeLike) -> Envelope:
    """Normalise one envelope, parsing registry rows and checking amounts."""
    if isinstance(envelope, Mapping):
        envelope = Envelope.from_dict(envelope)
    elif not isinstance(envelope, Envelope):
        raise InvalidInput(f"Expected an Envelope or mapping, got {type(envelope).__name__}")

    target = _non_negative(envelope.target_amount, f"{envelope.id}.target_amount")
    current = _non_negative(envelope.current_amount, f"{envelope.id}.current_amount")
    if envelope.due_day is not None and not 1 <= envelope.due_day <= 31:
        raise InvalidInput(f"{envelope.id}.due_day must be between 1 and 31, got {envelope.due_day}")
    return dataclasses.replace(
        envelope,
        target_amount=target,
        current_amount=current,
        suggestion_type=parse_tag(SuggestionType, envelope.suggestion_type, 'suggestion_type'),
        priority_tier=parse_tag(PriorityTier, envelope.priority_tier, 'priority_tier'),
        subtype=parse_tag(EnvelopeSubtype, envelope.subtype, 'subtype'),
    )


def validate_envelopes(envelopes: Optional[Iterable[EnvelopeLike]]) -> Tuple[Envelope, ...]:
    """Validate every envelope and reject duplicate identifiers.

    ``None`` or an empty iterable is valid and yields an empty tuple.
    """
    validated = tuple(validate_envelope(e) for e in (envelopes or ()))
    seen: Set[str] = set()
    for envelope in validated:
        if envelope.id in seen:
            raise InvalidInput(f"Duplicate envelope id {envelope.id!r}")
        seen.add(envelope.id)
    return validated


def validate_debt(debt: Union[DebtSnapshot, Mapping[str, Any], None]) -> DebtSnapshot:
    """Normalise the debt snapshot; ``None`` means the household has no debt."""
    if debt is None:
        return DebtSnapshot.none()
    if isinstance(debt, Mapping):
        debt = DebtSnapshot.from_dict(debt)
    elif not isinstance(debt, DebtSnapshot):
        raise InvalidInput(f"Expected a DebtSnapshot or mapping, got {type(debt).__name__}")
    active = debt.active_debt
    if active is not None:
        active = dataclasses.replace(active, balance=_non_negative(active.balance, 'active_debt.balance'))
    return DebtSnapshot(
        starting_debt=_non_negative(debt.starting_debt, 'starting_debt'),
        current_debt=_non_negative(debt.current_debt, 'current_debt'),
        active_debt=active,
    )


def resolve_strategy(strategy: Union[AllocationStrategy, str]) -> AllocationStrategy:
    """Parse a strategy tag, raising ``InvalidInput`` for unknown tags."""
    return parse_tag(AllocationStrategy, strategy, 'strategy')


def max_hybrid_amount(debt: DebtSnapshot, available_balance: Decimal) -> Decimal:
    """Largest amount a hybrid split may send to debt."""
    return min(debt.current_debt, available_balance)


def validate_hybrid_amount(
    hybrid_amount: Optional[MoneyLike],
    debt: DebtSnapshot,
    available_balance: Decimal,
) -> Decimal:
    """Check a hybrid amount lies in ``[0, min(current_debt, available_balance)]``.

    Raises:
        InvalidInput: If the amount is missing or out of range
    """
    if hybrid_amount is None:
        raise InvalidInput("hybrid strategy requires a hybrid_amount")
    amount = to_money(hybrid_amount, 'hybrid_amount')
    ceiling = max_hybrid_amount(debt, available_balance)
    if amount < ZERO or amount > ceiling:
        raise InvalidInput(
            f"hybrid_amount must be between 0 and {ceiling} "
            f"(the smaller of current debt and available balance), got {amount}"
        )
    return amount
