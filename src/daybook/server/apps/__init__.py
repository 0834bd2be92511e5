"""HTTP application components for the daybook server."""

from daybook.server.apps.starlette_app import DaybookStarletteApplication


__all__ = ['DaybookStarletteApplication']
