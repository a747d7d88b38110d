"""git-friends HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application that accepts commit webhooks and exposes health probes.

Usage
-----
Create and run the application::

    from gitfriends.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # webhook mode
"""

from gitfriends.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
