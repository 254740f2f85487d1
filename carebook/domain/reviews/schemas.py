"""Review domain schemas"""

from typing import Literal, Optional

from pydantic import BaseModel

from ...shared.fields import Rating, bounded_text, required_text
from ...utils.sanitization import REVIEW_COMMENT_MAX_LENGTH, sanitize_review_comment, sanitize_text


class ReviewSubmission(BaseModel):
    """Schema for a patient reviewing a completed appointment"""

    provider_id: required_text("Provider is required")
    appointment_id: required_text("Appointment is required")
    rating: Rating
    comment: bounded_text(
        REVIEW_COMMENT_MAX_LENGTH,
        "Review cannot exceed 1000 characters",
        sanitize_review_comment,
        min_length=10,
        too_short_message="Review must be at least 10 characters",
    )


class ReviewModeration(BaseModel):
    review_id: required_text("Review ID is required")
    action: Literal["approve", "reject"]
    response: Optional[bounded_text(500, "Response cannot exceed 500 characters", sanitize_text)] = None
