"""Pulseboard HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application serving report queries and health checks.

Usage
-----
Create and run the application::

    from pulseboard.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # with the report query endpoint

Public API
----------
create_app
    Application factory that configures the Falcon ASGI app with
    health endpoints and, when a query service is provided, the
    ``/api/e2e_run_report`` endpoint.
"""

from pulseboard.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
