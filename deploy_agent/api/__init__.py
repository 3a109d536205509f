"""Falcon ASGI API for the deploy agent.

Usage
-----
Create the application::

    from deploy_agent.api import create_app

    app = create_app()

"""

from __future__ import annotations

from deploy_agent.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
