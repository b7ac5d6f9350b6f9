"""Core module containing the engine, event bus, and type definitions."""

from mev_dashboard.core.event_bus import Event, EventBus, EventType, Subscription
from mev_dashboard.core.types import (
    ComplexOpportunity,
    Hop,
    Opportunity,
    OpportunityKind,
    OpportunitySnapshot,
    OutcomeStatus,
    PriceQuote,
    RiskProfile,
    SimpleOpportunity,
    Token,
    TradeOutcome,
    TriangularOpportunity,
    Venue,
    VenueRate,
)


__all__ = [
    "ComplexOpportunity",
    "Event",
    "EventBus",
    "EventType",
    "Hop",
    "Opportunity",
    "OpportunityKind",
    "OpportunitySnapshot",
    "OutcomeStatus",
    "PriceQuote",
    "RiskProfile",
    "SimpleOpportunity",
    "Subscription",
    "Token",
    "TradeOutcome",
    "TriangularOpportunity",
    "Venue",
    "VenueRate",
]
