"""
Enrollment Orchestrator

Runs one enrollment session: capture frames until the target number is
enrolled, capture frames until one verifies, then train the group. An
overall deadline and user cancellation are the only early exits; on failure
the partially enrolled person is deleted.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from faceenroll.core.exceptions import (
    AppException,
    CaptureEmpty,
    CompensationFailure,
    FrameError,
    SessionAlreadyRunning,
)
from faceenroll.core.logging import get_logger, log_error
from faceenroll.models.domain.enrollment import (
    TERMINAL_STATES,
    EnrollResult,
    EnrollmentState,
    EnrollSettings,
    PersonIdentity,
)
from faceenroll.services.cancellation import CancellationToken
from faceenroll.services.face_api import FaceApiService
from faceenroll.services.quality_filters import QualityFilter
from .frames import FrameProcessor

logger = get_logger(__name__)

TakePicture = Callable[[], Awaitable[Optional[bytes]]]
ProgressObserver = Callable[[int], None]
CompletionCallback = Callable[[EnrollResult], None]
FrameStep = Callable[[bytes], Awaitable[bool]]


class EnrollmentSession:
    """Transient state of one orchestrator run."""

    def __init__(self):
        self.rgb_frames_enrolled = 0
        self.verified = False
        self.cancellation_token = CancellationToken()
        self.compensation_attempted = False
        self.compensation_failure: Optional[CompensationFailure] = None

    @property
    def progress(self) -> int:
        """Progress shown to the user: enrolled frames plus the verified frame."""
        return self.rgb_frames_enrolled + (1 if self.verified else 0)


class EnrollmentOrchestrator:
    """
    Drives one enrollment session for a person identity.

    Usage:
        orchestrator = EnrollmentOrchestrator(face_api, identity, settings.enroll_settings())
        orchestrator.start(take_picture, on_completed)
        ...
        orchestrator.cancel()   # from the UI
    """

    def __init__(
        self,
        face_api: FaceApiService,
        identity: PersonIdentity,
        settings: EnrollSettings,
        quality_filter: Optional[QualityFilter] = None,
        on_progress: Optional[ProgressObserver] = None
    ):
        self.face_api = face_api
        self.identity = identity
        self.settings = settings
        self.on_progress = on_progress
        self.processor = FrameProcessor(
            face_api,
            identity,
            quality_filter or QualityFilter(),
            verify_min_confidence=settings.verify_min_confidence,
        )

        self.state = EnrollmentState.IDLE
        self.session: Optional[EnrollmentSession] = None
        self.result: Optional[EnrollResult] = None
        self._started = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._started and not self.state.is_terminal

    # ==================== Session control ====================

    def start(
        self,
        take_picture: TakePicture,
        on_completed: CompletionCallback
    ) -> Optional[asyncio.Task]:
        """
        Start the session in a background task.

        `on_completed` receives exactly one EnrollResult. A second call while
        the session is started is ignored and returns None.
        """
        try:
            self._begin()
        except SessionAlreadyRunning:
            logger.debug("[Enrollment] Start ignored, session already started")
            return None

        self._task = asyncio.get_running_loop().create_task(
            self._run_and_report(take_picture, on_completed)
        )
        return self._task

    async def run(self, take_picture: TakePicture) -> EnrollResult:
        """
        Run the session to completion in the current task.

        Raises:
            SessionAlreadyRunning: the session was already started
        """
        self._begin()
        return await self._run_session(take_picture)

    def cancel(self) -> bool:
        """Request user cancellation; observed at the next iteration boundary."""
        if self.session is None:
            logger.debug("[Enrollment] Cancel ignored, session not started")
            return False
        logger.info("[Enrollment] Cancel clicked")
        return self.session.cancellation_token.cancel()

    def _begin(self):
        if self._started:
            raise SessionAlreadyRunning()
        self._started = True
        self.session = EnrollmentSession()

    async def _run_and_report(
        self,
        take_picture: TakePicture,
        on_completed: CompletionCallback
    ) -> EnrollResult:
        try:
            result = await self._run_session(take_picture)
        except asyncio.CancelledError:
            on_completed(self.result or EnrollResult.CANCEL)
            raise
        except Exception as e:
            log_error(logger, e, "Enrollment")
            result = self._finish(EnrollResult.ERROR)

        logger.info(f"[Enrollment] Enrollment done: {result.value}")
        on_completed(result)
        return result

    # ==================== Workflow ====================

    async def _run_session(self, take_picture: TakePicture) -> EnrollResult:
        session = self.session
        try:
            return await self._run_steps(session, take_picture)
        except asyncio.CancelledError:
            logger.info("[Enrollment] Session task cancelled")
            if not session.verified:
                try:
                    await self._compensate_once(session)
                except asyncio.CancelledError:
                    logger.warning("[Enrollment] Cancelled again while deleting the partial enrollment")
            self._finish(EnrollResult.CANCEL)
            raise

    async def _run_steps(self, session: EnrollmentSession, take_picture: TakePicture) -> EnrollResult:
        token = session.cancellation_token

        # Let the user and camera settle so the first frame is usable
        await asyncio.sleep(self.settings.settle_delay_ms / 1000)

        timer = asyncio.get_running_loop().call_later(
            self.settings.timeout_seconds, self._on_deadline, token
        )
        aborted = False
        try:
            await self._enroll_loop(session, take_picture)
            await self._verify_loop(session, take_picture)
        except Exception as e:
            log_error(logger, e, "Enrollment")
            aborted = True
        finally:
            logger.debug("[Enrollment] Clearing timeout")
            timer.cancel()

        if not session.verified:
            logger.info("[Enrollment] Verify failed")
            await self._compensate_once(session)
            return self._finish(self._failure_result(token, aborted))

        self.state = EnrollmentState.TRAINING
        trained = await self._train()
        return self._finish(EnrollResult.SUCCESS if trained else EnrollResult.SUCCESS_NO_TRAIN)

    async def _enroll_loop(self, session: EnrollmentSession, take_picture: TakePicture):
        self.state = EnrollmentState.ENROLLING
        token = session.cancellation_token

        while (session.rgb_frames_enrolled < self.settings.frames_target
               and not token.is_cancellation_requested):
            if await self._attempt(take_picture, self.processor.enroll_frame):
                session.rgb_frames_enrolled += 1
                self._report_progress(session)
            else:
                await self._pause()

    async def _verify_loop(self, session: EnrollmentSession, take_picture: TakePicture):
        self.state = EnrollmentState.VERIFYING
        token = session.cancellation_token

        while not session.verified and not token.is_cancellation_requested:
            if await self._attempt(take_picture, self.processor.verify_frame):
                session.verified = True
                self._report_progress(session)
            else:
                await self._pause()

    async def _attempt(self, take_picture: TakePicture, step: FrameStep) -> bool:
        """One capture/submit pair. Returns whether the iteration advanced."""
        try:
            frame = await take_picture()
            if not frame:
                raise CaptureEmpty()
            return await step(frame)
        except FrameError as e:
            logger.debug(f"[Enrollment] {e.message}")
        except AppException as e:
            logger.warning(f"[Enrollment] Iteration failed: {e.code} {e.message}")
        return False

    async def _pause(self):
        # Always yields so the deadline can fire even with an instant capture provider
        await asyncio.sleep(self.settings.capture_retry_delay_ms / 1000)

    def _report_progress(self, session: EnrollmentSession):
        logger.info(f"[Enrollment] Progress {session.progress}")
        if self.on_progress is not None:
            self.on_progress(session.progress)

    def _on_deadline(self, token: CancellationToken):
        if token.timeout_cancel():
            logger.info("[Enrollment] Timeout triggers")

    # ==================== Outcome ====================

    async def _compensate_once(self, session: EnrollmentSession):
        """Run the compensating delete at most once per session, shielded from cancellation."""
        if session.compensation_attempted:
            return
        session.compensation_attempted = True
        session.compensation_failure = await asyncio.shield(self._compensate())

    async def _compensate(self) -> Optional[CompensationFailure]:
        """
        Delete the partially enrolled person.
        Failures are captured and logged; they never change the result.
        """
        try:
            deleted = await self.face_api.delete_person(
                self.identity.group_id, self.identity.person_id
            )
            logger.info(f"[Enrollment] Delete result: {deleted}")
            return None
        except Exception as e:
            failure = CompensationFailure(self.identity.person_id, e)
            logger.warning(f"[Enrollment] {failure.message}")
            return failure

    async def _train(self) -> bool:
        try:
            trained = await self.face_api.train(self.identity.group_id)
        except AppException as e:
            logger.warning(f"[Enrollment] Train failed: {e.message}")
            return False
        logger.info(f"[Enrollment] Train result: {trained}")
        return trained

    @staticmethod
    def _failure_result(token: CancellationToken, aborted: bool) -> EnrollResult:
        if aborted:
            return EnrollResult.ERROR
        if token.is_timeout_cancellation:
            return EnrollResult.TIMEOUT
        if token.is_cancellation_requested:
            return EnrollResult.CANCEL
        logger.error("[Enrollment] Verification ended without success or cancellation")
        return EnrollResult.ERROR

    def _finish(self, result: EnrollResult) -> EnrollResult:
        self.result = result
        self.state = TERMINAL_STATES[result]
        return result
