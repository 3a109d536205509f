"""Health probe and diagnostic resources.

Usage
-----
Import health resources for route registration::

    from deploy_agent.api.health.resources import HealthResource, ReadyResource
"""
