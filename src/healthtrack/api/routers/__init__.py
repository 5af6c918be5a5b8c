"""Route modules mounted by :func:`healthtrack.api.app.create_app`."""
