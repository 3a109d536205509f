"""GitHub webhook resource.

Usage
-----
Import the webhook resource for route registration::

    from deploy_agent.api.webhook.resources import GitHubWebhookResource
"""
