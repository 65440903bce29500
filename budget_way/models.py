"""Data types shared by the progress calculator, lock evaluator and waterfall.

Every type here is an immutable snapshot.  The engine reads envelopes and
the debt snapshot at the start of a calculation and never mutates them;
results are frozen too so identical inputs compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar

from .errors import InvalidInput
from .money import HUNDRED, ZERO, money_sum, percent_of, to_money


class SuggestionType(str, Enum):
    """Which Budget Way goal an envelope stands for, if any."""
    NONE = 'none'
    STARTER_STASH = 'starter_stash'
    SAFETY_NET = 'safety_net'
    CC_HOLDING = 'cc_holding'


class PriorityTier(str, Enum):
    """Priority tiers, declared in waterfall order."""
    ESSENTIAL = 'essential'
    IMPORTANT = 'important'
    EXTRA = 'extra'

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {PriorityTier.ESSENTIAL: 0, PriorityTier.IMPORTANT: 1, PriorityTier.EXTRA: 2}


class EnvelopeSubtype(str, Enum):
    BILL = 'bill'
    SPENDING = 'spending'
    SAVINGS = 'savings'
    GOAL = 'goal'
    TRACKING = 'tracking'


class AllocationStrategy(str, Enum):
    """How newly available money is split between debt and envelopes."""
    CREDIT_FIRST = 'credit_first'
    ENVELOPES_ONLY = 'envelopes_only'
    HYBRID = 'hybrid'


class LockState(str, Enum):
    COMPLETED = 'completed'
    ACTIVE = 'active'
    PENDING = 'pending'
    LOCKED = 'locked'


class GoalStep(str, Enum):
    """The fixed sequence of Budget Way milestones."""
    ESSENTIALS = 'essentials'
    STARTER_STASH = 'starter_stash'
    DEBT = 'debt'
    SAFETY_NET = 'safety_net'
    CC_HOLDING = 'cc_holding'


# Registry rows come from older screens that used other spellings
_TAG_ALIASES = {
    'discretionary': 'extra',
    'extras': 'extra',
    'flexible': 'extra',
    '': 'none',
}

E = TypeVar('E', bound=Enum)


def parse_tag(enum_cls: Type[E], value: Any, field_name: str) -> E:
    """Parse a string tag (or enum member) into ``enum_cls``.

    Accepts the hyphenated tags used by the registry (``starter-stash``) as
    well as snake case, and maps ``discretionary`` to ``extra``.

    Raises:
        InvalidInput: If the tag is not a member of ``enum_cls``
    """
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise InvalidInput(f"{field_name} must be a string tag, got {value!r}")
    tag = value.strip().lower().replace('-', '_')
    tag = _TAG_ALIASES.get(tag, tag)
    try:
        return enum_cls(tag)
    except ValueError as exc:
        allowed = ', '.join(member.value for member in enum_cls)
        raise InvalidInput(f"Unknown {field_name} {value!r}; expected one of: {allowed}") from exc


_TRUE_FLAGS = frozenset({'true', 'yes', '1', 'y', 't'})
_FALSE_FLAGS = frozenset({'false', 'no', '0', 'n', 'f', ''})


def parse_flag(value: Any, field_name: str) -> bool:
    """Parse a registry boolean, which may arrive as a bool, 0/1 or a string.

    Raises:
        InvalidInput: If the value is not a recognisable boolean
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        flag = value.strip().lower()
        if flag in _TRUE_FLAGS:
            return True
        if flag in _FALSE_FLAGS:
            return False
    raise InvalidInput(f"{field_name} must be true or false, got {value!r}")


@dataclass(frozen=True)
class Envelope:
    """A named bucket with a target and a current balance."""
    id: str
    name: str
    target_amount: Decimal = ZERO
    current_amount: Decimal = ZERO
    suggestion_type: SuggestionType = SuggestionType.NONE
    priority_tier: PriorityTier = PriorityTier.EXTRA
    subtype: EnvelopeSubtype = EnvelopeSubtype.SPENDING
    icon: str = ''
    due_day: Optional[int] = None
    position: int = 0
    is_dismissed: bool = False
    snoozed_until: Optional[date] = None

    @property
    def funding_gap(self) -> Decimal:
        return max(ZERO, self.target_amount - self.current_amount)

    @property
    def is_suggested(self) -> bool:
        return self.suggestion_type is not SuggestionType.NONE

    @property
    def is_tracking(self) -> bool:
        return self.subtype is EnvelopeSubtype.TRACKING

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> 'Envelope':
        """Build an envelope from a registry row.

        Accepts the registry's field names (``target_amount``/``targetAmount``,
        ``priority``/``priority_tier``) and string tags.

        Raises:
            InvalidInput: On a missing id, unparsable amount or unknown tag
        """
        envelope_id = row.get('id')
        if envelope_id is None or str(envelope_id).strip() == '':
            raise InvalidInput(f"Envelope row is missing an id: {dict(row)!r}")
        envelope_id = str(envelope_id)

        target = row.get('target_amount', row.get('targetAmount'))
        current = row.get('current_amount', row.get('currentAmount'))
        tier = row.get('priority_tier', row.get('priority'))
        due_day = row.get('due_day', row.get('dueDay'))
        snoozed = row.get('snoozed_until')
        try:
            due_day = int(due_day) if due_day not in (None, '') else None
            position = int(row.get('position', 0) or 0)
            snoozed = date.fromisoformat(snoozed) if isinstance(snoozed, str) and snoozed else None
        except (TypeError, ValueError) as exc:
            raise InvalidInput(f"Envelope {envelope_id!r} has an invalid field: {exc}") from exc

        return cls(
            id=envelope_id,
            name=str(row.get('name') or envelope_id),
            icon=str(row.get('icon') or ''),
            target_amount=to_money(target if target is not None else 0, f"{envelope_id}.target_amount"),
            current_amount=to_money(current if current is not None else 0, f"{envelope_id}.current_amount"),
            suggestion_type=parse_tag(SuggestionType, row.get('suggestion_type') or 'none', 'suggestion_type'),
            priority_tier=parse_tag(PriorityTier, tier or 'extra', 'priority_tier'),
            subtype=parse_tag(EnvelopeSubtype, row.get('subtype') or 'spending', 'subtype'),
            due_day=due_day,
            position=position,
            is_dismissed=parse_flag(row.get('is_dismissed', False), f"{envelope_id}.is_dismissed"),
            snoozed_until=snoozed,
        )


@dataclass(frozen=True)
class ActiveDebt:
    """The liability currently targeted for payoff (smallest first)."""
    name: str
    balance: Decimal


@dataclass(frozen=True)
class DebtSnapshot:
    """Revolving debt as seen by the debt-tracking component."""
    starting_debt: Decimal = ZERO
    current_debt: Decimal = ZERO
    active_debt: Optional[ActiveDebt] = None

    @property
    def has_debt(self) -> bool:
        return self.current_debt > 0

    @property
    def amount_paid(self) -> Decimal:
        return max(ZERO, self.starting_debt - self.current_debt)

    @property
    def payoff_progress(self) -> Decimal:
        """Percentage of the starting balance paid off (100 when there never was debt)."""
        if self.starting_debt <= 0:
            return HUNDRED
        return min(HUNDRED, percent_of(self.amount_paid, self.starting_debt))

    @classmethod
    def none(cls) -> 'DebtSnapshot':
        return cls()

    @classmethod
    def from_dict(cls, row: Optional[Mapping[str, Any]]) -> 'DebtSnapshot':
        if not row:
            return cls()
        active = row.get('active_debt')
        active_debt = None
        if active:
            if not isinstance(active, Mapping):
                raise InvalidInput(f"active_debt must be an object, got {active!r}")
            active_debt = ActiveDebt(
                name=str(active.get('name') or 'Debt'),
                balance=to_money(active.get('balance', 0), 'active_debt.balance'),
            )
        current = to_money(row.get('current_debt', 0), 'current_debt')
        starting = row.get('starting_debt')
        return cls(
            starting_debt=to_money(starting, 'starting_debt') if starting is not None else current,
            current_debt=current,
            active_debt=active_debt,
        )


@dataclass(frozen=True)
class Milestone:
    """One rung of the funding ladder shown on the envelope summary."""
    id: str
    label: str
    threshold: int
    achieved: bool
    in_progress: bool
    progress: Decimal


@dataclass(frozen=True)
class MilestoneProgress:
    overall_progress: Decimal
    total_target: Decimal
    total_current: Decimal
    funding_gap: Decimal
    funded_count: int
    total_count: int
    needs_funding: int
    essentials_progress: Decimal
    essentials_underfunded: bool
    should_show_envelope_row: bool
    milestones: Tuple[Milestone, ...] = ()

    @property
    def next_milestone(self) -> Optional[Milestone]:
        return next((m for m in self.milestones if not m.achieved), None)


@dataclass(frozen=True)
class EnvelopeAllocation:
    envelope_id: str
    amount: Decimal


@dataclass(frozen=True)
class WaterfallLine:
    """How the waterfall treated one envelope, allocated or not."""
    envelope_id: str
    priority_tier: PriorityTier
    funding_gap: Decimal
    allocated: Decimal
    locked: bool

    @property
    def shortfall(self) -> Decimal:
        return self.funding_gap - self.allocated

    @property
    def is_fully_funded(self) -> bool:
        return not self.locked and self.allocated >= self.funding_gap


@dataclass(frozen=True)
class AllocationResult:
    """Where newly available money goes.

    ``sum(allocations) + amount_to_debt + remainder_unallocated`` always
    equals ``available_balance`` exactly.
    """
    allocations: Tuple[EnvelopeAllocation, ...]
    amount_to_debt: Decimal
    remainder_unallocated: Decimal
    available_balance: Decimal
    strategy: AllocationStrategy
    lines: Tuple[WaterfallLine, ...] = ()

    @property
    def total_to_envelopes(self) -> Decimal:
        return money_sum(a.amount for a in self.allocations)

    @property
    def envelope_pool(self) -> Decimal:
        return self.available_balance - self.amount_to_debt

    def as_mapping(self) -> Dict[str, Decimal]:
        return {a.envelope_id: a.amount for a in self.allocations}

    def amount_for(self, envelope_id: str) -> Decimal:
        return self.as_mapping().get(envelope_id, ZERO)


@dataclass(frozen=True)
class AllocationSummary:
    total_gap: Decimal
    total_allocated: Decimal
    total_shortfall: Decimal
    fully_funded_count: int
    partially_funded_count: int
    unfunded_count: int
    locked_count: int
    by_tier: Dict[PriorityTier, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class StrategyRecommendation:
    strategy: AllocationStrategy
    reason: str


@dataclass(frozen=True)
class GoalStepStatus:
    """One row of the Budget Way step table."""
    step: GoalStep
    number: int
    title: str
    icon: str
    state: LockState
    target: Decimal
    current: Decimal
    progress: Decimal
    display_progress: Decimal
    applicable: bool
    description: str

    @property
    def difference(self) -> Decimal:
        return self.current - self.target

    @property
    def is_locked(self) -> bool:
        return self.state is LockState.LOCKED
