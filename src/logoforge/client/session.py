"""Client-side orchestration of one design session.

A session owns the form state, the last :class:`DesignResult` and exactly two
variant slots.  Each slot moves through::

    IDLE -> GENERATING_TEXT -> TEXT_DONE -> GENERATING_IMAGE -> IMAGE_READY
                      \\______________ ERROR (from any point) _____________/

Submission
----------
1. The form (and both slots) enter ``GENERATING_TEXT``.
2. The analysis call runs with retry.  On failure the form returns to
   ``IDLE`` with a message; on success both slots receive their variant.
3. Both image requests start together and finish in any order.  A failure in
   one slot never touches the other.

Stale responses
---------------
Every submission increments ``epoch`` and every image request increments
its slot's ``ticket``.  ``apply_*`` methods compare the values they were
started with against the current ones and drop results that no longer match,
so a late answer from an earlier submission (or an earlier regenerate click)
cannot overwrite newer state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Protocol

from logoforge.api.models import DesignRequest, DesignResult, Variant
from logoforge.core.errors import ValidationError
from logoforge.core.retry import ClassifiedError, Err, Ok
from logoforge.providers.base import ImageResult

from .image_sources import ImageSource
from .messages import FORM_INCOMPLETE, IMAGE_FAILURE, message_for

logger = logging.getLogger(__name__)

SLOT_COUNT = 2


class SlotState(str, Enum):
    IDLE = "idle"
    GENERATING_TEXT = "generating-text"
    TEXT_DONE = "text-done"
    GENERATING_IMAGE = "generating-image"
    IMAGE_READY = "image-ready"
    ERROR = "error"


class AnalysisBackend(Protocol):
    async def generate_analysis(self, request: DesignRequest) -> Ok[DesignResult] | Err: ...


@dataclass
class Slot:
    """One of the two variant cards."""

    index: int
    state: SlotState = SlotState.IDLE
    variant: Variant | None = None
    image: str | None = None
    source: str | None = None
    error: str | None = None
    ticket: int = 0

    def clear(self, state: SlotState) -> None:
        self.state = state
        self.variant = None
        self.image = None
        self.source = None
        self.error = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of a session, handed to the UI."""

    epoch: int
    form_state: SlotState
    error: str | None
    result: DesignResult | None
    slots: tuple[Slot, ...]

    @property
    def busy(self) -> bool:
        return self.form_state == SlotState.GENERATING_TEXT


@dataclass
class DesignSession:
    """State and orchestration for one user's design flow.

    Args:
        analysis: Backend for the analysis call (usually a GatewayClient).
        image_source: Strategy producing preview images.
    """

    analysis: AnalysisBackend
    image_source: ImageSource
    form_state: SlotState = SlotState.IDLE
    error: str | None = None
    result: DesignResult | None = None
    epoch: int = 0
    slots: list[Slot] = field(default_factory=lambda: [Slot(i) for i in range(SLOT_COUNT)])

    # --- State transitions -------------------------------------------------

    def begin_submission(self, request: DesignRequest) -> int:
        """Start a new submission and return its epoch.

        The previous result is discarded entirely.

        Raises:
            ValidationError: If either field is blank.  The form stays idle
                and ``error`` holds the message.
        """
        if not request.is_complete():
            self.error = FORM_INCOMPLETE
            raise ValidationError(message=FORM_INCOMPLETE)

        self.epoch += 1
        self.form_state = SlotState.GENERATING_TEXT
        self.error = None
        self.result = None
        for slot in self.slots:
            slot.clear(SlotState.GENERATING_TEXT)
        logger.info(f"Submission {self.epoch} started for project: {request.projectName}")
        return self.epoch

    def apply_design(self, epoch: int, result: DesignResult) -> bool:
        """Install a design result; False if *epoch* is stale."""
        if epoch != self.epoch:
            logger.info(f"Dropping stale design result (epoch {epoch}, current {self.epoch})")
            return False
        self.result = result
        self.form_state = SlotState.TEXT_DONE
        for slot, variant in zip(self.slots, result.variants):
            slot.clear(SlotState.TEXT_DONE)
            slot.variant = variant
        return True

    def apply_failure(self, epoch: int, err: Err) -> bool:
        """Return the form to idle with an error message; False if stale."""
        if epoch != self.epoch:
            return False
        self.form_state = SlotState.IDLE
        self.error = message_for(err)
        for slot in self.slots:
            slot.clear(SlotState.IDLE)
        return True

    def begin_image(self, epoch: int, index: int) -> int:
        """Mark a slot as generating and return its new ticket."""
        slot = self.slots[index]
        if epoch != self.epoch or slot.variant is None:
            raise ValueError(f"Slot {index} has no variant for epoch {epoch}")
        slot.ticket += 1
        slot.state = SlotState.GENERATING_IMAGE
        slot.image = None
        slot.source = None
        slot.error = None
        return slot.ticket

    def apply_image(self, epoch: int, index: int, ticket: int, image: ImageResult) -> bool:
        """Show an image in a slot; False if the request is stale."""
        slot = self.slots[index]
        if epoch != self.epoch or ticket != slot.ticket:
            logger.info(f"Dropping stale image for slot {index}")
            return False
        slot.state = SlotState.IMAGE_READY
        slot.image = image.image
        slot.source = image.source
        return True

    def apply_image_failure(self, epoch: int, index: int, ticket: int, message: str) -> bool:
        """Put a slot in the error state; False if the request is stale."""
        slot = self.slots[index]
        if epoch != self.epoch or ticket != slot.ticket:
            return False
        slot.state = SlotState.ERROR
        slot.error = message
        return True

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            epoch=self.epoch,
            form_state=self.form_state,
            error=self.error,
            result=self.result,
            slots=tuple(replace(slot) for slot in self.slots),
        )

    # --- Orchestration -----------------------------------------------------

    async def _run_image(self, epoch: int, index: int, ticket: int) -> None:
        prompt = self.slots[index].variant.prompt
        try:
            image = await self.image_source.generate(prompt)
        except asyncio.CancelledError:
            raise
        except ClassifiedError as e:
            logger.warning(f"Image for slot {index} failed: {e.err.kind.value}")
            self.apply_image_failure(epoch, index, ticket, e.err.message or IMAGE_FAILURE)
            return
        except Exception as e:
            logger.error(f"Image for slot {index} failed: {e}", exc_info=True)
            self.apply_image_failure(epoch, index, ticket, IMAGE_FAILURE)
            return
        self.apply_image(epoch, index, ticket, image)

    async def submit(self, request: DesignRequest) -> AsyncIterator[SessionSnapshot]:
        """Run a full submission, yielding a snapshot after each transition.

        Snapshots are yielded when text generation starts, when it finishes
        (or fails), when both image requests have started, and each time
        one image request completes.
        """
        try:
            epoch = self.begin_submission(request)
        except ValidationError:
            yield self.snapshot()
            return
        yield self.snapshot()

        outcome = await self.analysis.generate_analysis(request)
        if isinstance(outcome, Err):
            if self.apply_failure(epoch, outcome):
                yield self.snapshot()
            return
        if not self.apply_design(epoch, outcome.value):
            return
        yield self.snapshot()

        tasks = []
        for index in range(SLOT_COUNT):
            ticket = self.begin_image(epoch, index)
            tasks.append(asyncio.create_task(self._run_image(epoch, index, ticket)))
        yield self.snapshot()

        for finished in asyncio.as_completed(tasks):
            await finished
            yield self.snapshot()

    async def aclose(self) -> None:
        """Close the backend's HTTP client, if it has one."""
        close = getattr(self.analysis, "aclose", None)
        if close is not None:
            await close()

    async def regenerate(self, index: int) -> SessionSnapshot:
        """Discard a slot's image and generate a new one for the same prompt."""
        slot = self.slots[index]
        if slot.variant is None:
            return self.snapshot()
        epoch = self.epoch
        ticket = self.begin_image(epoch, index)
        await self._run_image(epoch, index, ticket)
        return self.snapshot()
