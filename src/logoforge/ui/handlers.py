"""Gradio event handlers for the Logoforge UI.

Handlers translate UI events into :class:`DesignSession` calls and render
:class:`SessionSnapshot` objects into component values.  Rendering is pure
so it can be tested without Gradio.

Output order of :func:`render_snapshot`::

    error, summary, colors,
    slot 1: title, prompt, image, status,
    slot 2: title, prompt, image, status
"""

import html
import logging
from collections.abc import AsyncIterator

from logoforge.api.models import ColorSwatch, DesignRequest
from logoforge.client.session import DesignSession, SessionSnapshot, Slot, SlotState

from .state import initialize_session

logger = logging.getLogger(__name__)

_STATUS_LABELS = {
    SlotState.IDLE: "",
    SlotState.GENERATING_TEXT: "⏳ جاري تحليل الفكرة...",
    SlotState.TEXT_DONE: "✍️ البرومبت جاهز",
    SlotState.GENERATING_IMAGE: "🎨 جاري توليد الصورة...",
    SlotState.IMAGE_READY: "✅ الصورة جاهزة",
    SlotState.ERROR: "❌",
}

_SOURCE_LABELS = {"gemini": "Gemini", "pollinations": "Pollinations"}


def render_error(snapshot: SessionSnapshot) -> str:
    if not snapshot.error:
        return ""
    return f"⚠️ **{snapshot.error}**"


def render_summary(snapshot: SessionSnapshot) -> str:
    if snapshot.result is None:
        return ""
    return f"### ملخص الفكرة\n\n{snapshot.result.concept_summary}"


def render_colors(colors: list[ColorSwatch]) -> str:
    """Render the palette as small HTML swatches."""
    swatches = []
    for color in colors:
        name = html.escape(color.name)
        hex_value = html.escape(color.hex)
        swatches.append(
            '<div style="display:inline-flex;align-items:center;gap:6px;margin:4px 8px 4px 0">'
            f'<span style="width:22px;height:22px;border-radius:6px;background:{hex_value};'
            'border:1px solid #d1d5db;display:inline-block"></span>'
            f"<span>{name} <code>{hex_value}</code></span></div>"
        )
    return "".join(swatches)


def render_image(slot: Slot) -> str:
    """Return an ``<img>`` tag for the slot, or a placeholder."""
    if slot.image:
        src = html.escape(slot.image, quote=True)
        return (
            f'<img src="{src}" alt="logo preview {slot.index + 1}" loading="lazy" '
            'style="width:100%;max-width:512px;border-radius:12px;background:#fff"/>'
        )
    if slot.state == SlotState.GENERATING_IMAGE:
        return '<div style="padding:48px;text-align:center">🎨 ...</div>'
    return ""


def render_status(slot: Slot) -> str:
    label = _STATUS_LABELS.get(slot.state, "")
    if slot.state == SlotState.ERROR and slot.error:
        return f"{label} {slot.error}"
    if slot.state == SlotState.IMAGE_READY and slot.source:
        return f"{label} ({_SOURCE_LABELS.get(slot.source, slot.source)})"
    return label


def render_slot(slot: Slot) -> tuple[str, str, str, str]:
    title = f"### {slot.variant.title}" if slot.variant else ""
    prompt = slot.variant.prompt if slot.variant else ""
    return title, prompt, render_image(slot), render_status(slot)


def render_snapshot(snapshot: SessionSnapshot) -> tuple:
    """Flatten a snapshot into component values in the module-level output order."""
    colors = render_colors(snapshot.result.colors) if snapshot.result else ""
    values: list[str] = [render_error(snapshot), render_summary(snapshot), colors]
    for slot in snapshot.slots:
        values.extend(render_slot(slot))
    return tuple(values)


async def submit_design(
    project_name: str, input_text: str, session: DesignSession | None
) -> AsyncIterator[tuple]:
    """Stream UI updates for a form submission.

    Args:
        project_name: Project name textbox value, sent upper-cased
        input_text: Description textbox value
        session: Per-user session state (created on first use)

    Yields:
        Rendered component values followed by the session
    """
    session = initialize_session(session)
    request = DesignRequest(projectName=(project_name or "").upper(), inputText=input_text)
    async for snapshot in session.submit(request):
        yield (*render_snapshot(snapshot), session)


async def regenerate_slot(index: int, session: DesignSession | None) -> tuple:
    """Regenerate the image of one slot with a fresh seed."""
    session = initialize_session(session)
    snapshot = await session.regenerate(index)
    return (*render_snapshot(snapshot), session)
