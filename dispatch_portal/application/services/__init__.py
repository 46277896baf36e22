"""
Application services package.
"""

from .branch_ranker import BranchRanker, RankedBranch
from .dispatch_coordinator import DispatchCoordinator
from .geo_distance import EARTH_RADIUS_KM, distance_km, haversine_km
from .request_state_machine import TRANSITIONS, RequestStateMachine, TransitionContext
from .sla_policy import SlaPolicy
from .timeline import Timeline

__all__ = [
    "BranchRanker",
    "DispatchCoordinator",
    "EARTH_RADIUS_KM",
    "RankedBranch",
    "RequestStateMachine",
    "SlaPolicy",
    "TRANSITIONS",
    "Timeline",
    "TransitionContext",
    "distance_km",
    "haversine_km",
]
