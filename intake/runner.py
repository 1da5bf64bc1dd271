"""
Submission runner: orchestrates one submission attempt.
Runs validation → encoding → AI analysis → persistence and records every stage visited.

Any failure ends the attempt with a single user-facing message; the form values and
attachments are left untouched so the user can retry without re-entering data.
"""

import uuid
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from intake.encode import encode_attachments
from intake.errors import FormValidationError, IntakeError
from intake.form_state import FormState
from intake.validate import validate_form

logger = logging.getLogger(__name__)

ALREADY_SUBMITTING = "Um envio já está em andamento."


class SubmissionState(str, Enum):
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    ENCODING = "ENCODING"
    ANALYZING = "ANALYZING"
    PERSISTING = "PERSISTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class SubmissionResult:
    """Outcome of one submit attempt."""

    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        self.state = SubmissionState.IDLE
        self.history: List[SubmissionState] = [SubmissionState.IDLE]
        self.message: Optional[str] = None
        self.errors: Dict[str, str] = {}
        self.record: Optional[Dict[str, Any]] = None
        self.error: Optional[Exception] = None

    def transition(self, state: SubmissionState) -> None:
        logger.info(f"[{self.submission_id}] {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def succeeded(self) -> bool:
        return self.state == SubmissionState.SUCCEEDED


class SubmissionRunner:
    """
    Sequences one submission. Dependencies are injected:
        - analyzer: object with analyze(data, current_images, final_images) -> AIAnalysis
        - store: object with save_record(data, analysis) -> dict
    """

    def __init__(self, analyzer, store):
        self.analyzer = analyzer
        self.store = store

    def submit(self, form_state: FormState) -> SubmissionResult:
        result = SubmissionResult(uuid.uuid4().hex[:12])

        if not form_state.begin_submit():
            logger.warning(f"⚠️ [{result.submission_id}] Submission already in progress, ignoring")
            result.transition(SubmissionState.FAILED)
            result.message = ALREADY_SUBMITTING
            return result

        form_state.form_error = None
        try:
            self._run(form_state, result)
        finally:
            form_state.end_submit()

        return result

    def _run(self, form_state: FormState, result: SubmissionResult) -> None:
        data = form_state.snapshot()

        try:
            result.transition(SubmissionState.VALIDATING)
            errors = validate_form(data)
            if errors:
                raise FormValidationError(errors)
            form_state.errors = {}

            result.transition(SubmissionState.ENCODING)
            current_images, final_images = encode_attachments(
                data.current_situation_image, data.final_project_image
            )

            result.transition(SubmissionState.ANALYZING)
            analysis = self.analyzer.analyze(data, current_images, final_images)

            result.transition(SubmissionState.PERSISTING)
            result.record = self.store.save_record(data, analysis)

        except FormValidationError as e:
            form_state.errors = dict(e.errors)
            result.errors = dict(e.errors)
            result.transition(SubmissionState.FAILED)
            logger.info(f"[{result.submission_id}] Validation failed: {sorted(e.errors)}")
            return
        except IntakeError as e:
            self._fail(form_state, result, e, e.user_message)
            return
        except Exception as e:
            logger.exception(f"❌ [{result.submission_id}] Unexpected error during submission")
            self._fail(form_state, result, e, IntakeError.default_message)
            return

        result.transition(SubmissionState.SUCCEEDED)
        logger.info(f"✅ [{result.submission_id}] Submission saved")

    @staticmethod
    def _fail(form_state: FormState, result: SubmissionResult, error: Exception, message: str) -> None:
        failed_stage = result.state.value
        result.error = error
        result.message = message
        form_state.form_error = message
        result.transition(SubmissionState.FAILED)
        logger.error(f"❌ [{result.submission_id}] Submission failed during {failed_stage}: {error!r}")
