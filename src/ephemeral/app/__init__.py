"""Session wiring and the headless command-line entry point.

Run ``ephemeral-viewer --help`` (``ephemeral.app.main``) for options.
"""

__all__: list[str] = []
