"""Form state controller.

Holds the draft of one form instance, its touched/error state and its
lifecycle state, and drives a submission through an ActionPipeline.
"""

import logging
from collections.abc import Mapping
from typing import Any

from tradepulse.api.middleware.error_handler import SubmissionInProgressError, ValidationError
from tradepulse.forms.pipeline import ActionPipeline
from tradepulse.forms.preview import SelectedFile
from tradepulse.forms.schema import FormSchema
from tradepulse.schemas.form import FormSnapshot, FormState, SubmissionResult

logger = logging.getLogger(__name__)

INVALID_FORM_MESSAGE = "Please correct the highlighted fields."


class FormController:
    """State machine for one form instance.

    Edits re-validate only the edited field. A submission validates the
    whole draft first and only then hands a snapshot of it to the
    pipeline. At most one submission runs at a time; while it runs the
    draft belongs to the controller and edits are refused.
    """

    def __init__(self, schema: FormSchema, initial: Mapping[str, Any] | None = None) -> None:
        self.schema = schema
        self.values: dict[str, Any] = schema.defaults()
        self.values.update({k: v for k, v in (initial or {}).items() if k in schema})
        self.errors: dict[str, str] = {}
        self.touched: set[str] = set()
        self.form_error: str | None = None
        self.state = FormState.IDLE
        self.history: list[FormState] = [FormState.IDLE]
        self.last_result: SubmissionResult | None = None
        self._submitting = False
        self._disposed = False

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _transition(self, state: FormState) -> None:
        if state is self.state:
            return
        logger.debug("%s form: %s -> %s", self.schema.name, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def set_field(self, name: str, value: Any) -> str | None:
        """Update one draft field and re-validate it.

        Returns:
            str | None: The field's error message, if any.

        Raises:
            SubmissionInProgressError: While a submission owns the draft.
            ValidationError: For unknown or read-only fields.
        """
        if self._submitting:
            raise SubmissionInProgressError()
        if name not in self.schema:
            raise ValidationError.from_field_errors({name: "Unknown field."})
        if self.schema.fields[name].read_only:
            raise ValidationError.from_field_errors({name: "This field cannot be changed."})

        self.values[name] = value
        self.touched.add(name)
        message = self.schema.validate_field(self.values, name)
        if message:
            self.errors[name] = message
        else:
            self.errors.pop(name, None)

        if self.state is FormState.IDLE:
            self._transition(FormState.EDITING)
        return message

    def reject_field(self, name: str, message: str) -> None:
        """Restore a field to its default and show ``message`` on it.

        Used when a value is refused before it reaches the draft, e.g. a
        file over the size ceiling.
        """
        if self._submitting:
            raise SubmissionInProgressError()
        self.values[name] = self.schema.fields[name].default
        self.errors[name] = message
        self.touched.add(name)
        if self.state is FormState.IDLE:
            self._transition(FormState.EDITING)

    def reset(self, record: Mapping[str, Any] | None = None) -> None:
        """Discard the draft and start over from ``record``."""
        if self._submitting:
            raise SubmissionInProgressError()
        self.values = self.schema.defaults()
        self.values.update({k: v for k, v in (record or {}).items() if k in self.schema})
        self.errors = {}
        self.touched = set()
        self.form_error = None
        self._transition(FormState.IDLE)

    async def submit(self, pipeline: ActionPipeline) -> SubmissionResult:
        """Validate the draft and, if valid, run the pipeline on a snapshot.

        Raises:
            SubmissionInProgressError: If a submission is already in flight.
        """
        if self._submitting:
            raise SubmissionInProgressError()

        errors = self.schema.validate(self.values)
        if errors:
            self.errors = errors
            self.touched.update(self.schema.fields)
            self._transition(FormState.EDITING)
            result = SubmissionResult(
                success=False,
                error_message=INVALID_FORM_MESSAGE,
                field_errors=errors,
            )
            self.last_result = result
            return result

        self._submitting = True
        self.form_error = None
        self._transition(FormState.SUBMITTING)
        try:
            result = await pipeline.run(dict(self.values))
        finally:
            self._submitting = False

        if self._disposed:
            logger.debug("%s form disposed during submission; state left as is", self.schema.name)
            return result

        self.last_result = result
        if result.success:
            self._succeed(result)
        else:
            self._fail(result)
        return result

    def _succeed(self, result: SubmissionResult) -> None:
        self._transition(FormState.SUCCEEDED)
        for name in self.schema.ephemeral_fields:
            self.values[name] = self.schema.fields[name].default
        if result.record:
            self.values.update({k: v for k, v in result.record.items() if k in self.schema})
        self.errors = {}
        self.touched = set()
        self._transition(FormState.IDLE)

    def _fail(self, result: SubmissionResult) -> None:
        self._transition(FormState.FAILED)
        self.form_error = result.error_message
        if result.field_errors:
            self.errors.update(result.field_errors)
            self.touched.update(result.field_errors)
        self._transition(FormState.EDITING)

    def dispose(self) -> None:
        """Detach the controller; an in-flight submission will not touch its state."""
        self._disposed = True

    def snapshot(self) -> FormSnapshot:
        secret = set(self.schema.secret_fields)
        values: dict[str, Any] = {}
        for name, value in self.values.items():
            if name in secret:
                continue
            # files are shown through their preview, not their bytes
            values[name] = value.name if isinstance(value, SelectedFile) else value
        return FormSnapshot(
            form=self.schema.name,
            state=self.state,
            values=values,
            errors={k: v for k, v in self.errors.items() if k in self.touched},
            touched=sorted(self.touched),
            form_error=self.form_error,
        )
