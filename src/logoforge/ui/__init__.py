"""Gradio client application for Logoforge.

Modules
-------
app
    ``create_ui()`` layout and the ``main()`` entry point.
handlers
    Event handlers and snapshot rendering.
state
    Per-user :class:`~logoforge.client.session.DesignSession` construction.
"""
