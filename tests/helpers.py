from decimal import Decimal

from budget_way.models import (
    ActiveDebt,
    DebtSnapshot,
    Envelope,
    EnvelopeSubtype,
    PriorityTier,
    SuggestionType,
)


def env(envelope_id, tier='essential', target=0, current=0, **kwargs):
    """Build an envelope with Decimal balances and enum tags from short strings."""
    suggestion = kwargs.pop('suggestion', 'none')
    subtype = kwargs.pop('subtype', 'spending')
    return Envelope(
        id=envelope_id,
        name=kwargs.pop('name', envelope_id.title()),
        target_amount=Decimal(str(target)),
        current_amount=Decimal(str(current)),
        suggestion_type=SuggestionType(suggestion),
        priority_tier=PriorityTier(tier),
        subtype=EnvelopeSubtype(subtype),
        **kwargs,
    )


def debt(current=0, starting=None, active=None):
    starting = current if starting is None else starting
    active_debt = ActiveDebt(active[0], Decimal(str(active[1]))) if active else None
    return DebtSnapshot(
        starting_debt=Decimal(str(starting)),
        current_debt=Decimal(str(current)),
        active_debt=active_debt,
    )


NO_DEBT = DebtSnapshot()
