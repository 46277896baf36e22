"""
API schemas for the dispatch portal.
"""

from .branch import BranchSchema, RankBranchesBody, RankedBranchResponse
from .common import BaseResponse, ErrorResponse
from .request import (
    AcceptRequestBody,
    AssignmentResponseSchema,
    AssignNearestBody,
    AssignRequestBody,
    CloseRequestBody,
    CustomerSchema,
    RatingBody,
    RejectRequestBody,
    ServiceRequestResponse,
    SlaStatusResponse,
    StatusUpdateBody,
    SubmitRequestBody,
    TimelineEventResponse,
)

__all__ = [
    "AcceptRequestBody",
    "AssignmentResponseSchema",
    "AssignNearestBody",
    "AssignRequestBody",
    "BaseResponse",
    "BranchSchema",
    "CloseRequestBody",
    "CustomerSchema",
    "ErrorResponse",
    "RankBranchesBody",
    "RankedBranchResponse",
    "RatingBody",
    "RejectRequestBody",
    "ServiceRequestResponse",
    "SlaStatusResponse",
    "StatusUpdateBody",
    "SubmitRequestBody",
    "TimelineEventResponse",
]
