"""Media feedback endpoint."""

from fastapi import APIRouter, Depends, status

from precalc.db.feedback_repository import insert_media_feedback
from precalc.web.schemas import MediaFeedbackRequest, MediaFeedbackResponse
from precalc.web.sessions import LoginSession, require_login

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post("/media", response_model=MediaFeedbackResponse, status_code=status.HTTP_201_CREATED)
async def post_media_feedback(
    request: MediaFeedbackRequest, login: LoginSession = Depends(require_login)
) -> MediaFeedbackResponse:
    """Store a comment the student left on a video or worked example."""
    feedback_id = insert_media_feedback(login.student_id, request.media_id, request.comment)
    return MediaFeedbackResponse(feedback_id=feedback_id, media_id=request.media_id)
