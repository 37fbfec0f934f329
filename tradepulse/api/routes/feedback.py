"""Feedback API routes."""

from fastapi import APIRouter, File, Form, UploadFile, status

from tradepulse.api.deps import CurrentUser, FormSessions, raise_for_failure, read_upload
from tradepulse.api.middleware.error_handler import ValidationError
from tradepulse.forms.definitions import attachment_policy
from tradepulse.forms.preview import SelectedFile, build_preview
from tradepulse.schemas.auth import UserContext
from tradepulse.schemas.feedback import FeedbackSubmissionResponse
from tradepulse.schemas.form import FilePreview
from tradepulse.services.feedback_form import ATTACHMENT_FIELD, FeedbackForm
from tradepulse.services.form_sessions import FormSessionRegistry

router = APIRouter(prefix="/feedback", tags=["feedback"])


async def _feedback_form(user: UserContext, sessions: FormSessionRegistry) -> FeedbackForm:
    async def build() -> FeedbackForm:
        return FeedbackForm(user.user_id)

    return await sessions.get_or_create(FeedbackForm.form_name, user.user_id, build)


@router.post(
    "",
    response_model=FeedbackSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit feedback",
    description=(
        "Subject and message of at least 10 characters, plus an optional attachment "
        "(.jpg, .jpeg, .png, .webp or .pdf, at most 4 MB)."
    ),
)
async def submit_feedback(
    user: CurrentUser,
    sessions: FormSessions,
    subject: str = Form(default=""),
    message: str = Form(default=""),
    attachment: UploadFile | None = File(default=None, description="Optional attachment"),
) -> FeedbackSubmissionResponse:
    """Submit feedback.

    Invalid input fails with 422 before anything is uploaded or stored.

    Raises:
        ValidationError: 422 for short fields or a rejected attachment.
        SubmissionInProgressError: 409 if a submission is already running.
        RemoteOperationError: 502 if the upload or the insert failed.
    """
    form = await _feedback_form(user, sessions)
    result = await form.apply_and_submit(
        {"subject": subject, "message": message},
        attachment=await read_upload(attachment),
    )
    raise_for_failure(result)
    return FeedbackSubmissionResponse(result=result)


@router.post(
    "/attachment/preview",
    response_model=FilePreview,
    summary="Preview attachment",
    description="Checks an attachment against the size and type policy without storing it.",
)
async def preview_attachment(
    user: CurrentUser,
    file: UploadFile = File(..., description="Attachment to check"),
) -> FilePreview:
    selected: SelectedFile | None = await read_upload(file)
    if selected is None:
        raise ValidationError.from_field_errors({ATTACHMENT_FIELD: "Please select a file."})
    attachment_policy().check(selected, ATTACHMENT_FIELD)
    return await build_preview(selected)
