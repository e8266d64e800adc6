"""Session construction for the Logoforge UI.

Each browser session gets its own :class:`DesignSession`, created lazily on
the first event and kept in a ``gr.State``.
"""

import asyncio
import logging

from logoforge.client.api_client import GatewayClient
from logoforge.client.image_sources import GatewayImageSource, LocalImageSource
from logoforge.client.session import DesignSession
from logoforge.core.config import LogoforgeConfig, config
from logoforge.core.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Pending close tasks, held so they are not collected mid-flight
_closing: set[asyncio.Task] = set()


def create_session(cfg: LogoforgeConfig | None = None) -> DesignSession:
    """Build a session wired to the configured gateway.

    Args:
        cfg: Configuration (default: global config)

    Returns:
        New DesignSession using either the Image Gateway or in-process
        Pollinations URLs for previews, per ``use_gateway_images``.
    """
    cfg = cfg or config
    client = GatewayClient(
        cfg.api_base_url,
        policy=RetryPolicy.from_config(cfg),
        timeout=cfg.request_timeout_seconds,
    )
    if cfg.use_gateway_images:
        image_source = GatewayImageSource(client)
    else:
        image_source = LocalImageSource.pollinations_only(cfg)

    logger.info(
        f"Created design session (gateway={cfg.api_base_url}, "
        f"images={'gateway' if cfg.use_gateway_images else 'local'})"
    )
    return DesignSession(analysis=client, image_source=image_source)


def close_session(session: DesignSession | None) -> None:
    """Release a session's HTTP client when Gradio drops its state.

    The close is scheduled on the loop that opened the client, whether this
    callback runs on that loop or on a worker thread.
    """
    if session is None:
        return
    owner = getattr(session.analysis, "loop", None)
    if owner is None or owner.is_closed():
        # No client was ever opened, or its loop is already gone
        return

    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None

    if running is owner:
        task = owner.create_task(session.aclose())
        _closing.add(task)
        task.add_done_callback(_closing.discard)
    else:
        asyncio.run_coroutine_threadsafe(session.aclose(), owner)
    logger.info("Scheduled close of expired design session")


def initialize_session(session: DesignSession | None) -> DesignSession:
    """Return *session*, creating one if this is the first event."""
    if session is None:
        session = create_session()
    return session
