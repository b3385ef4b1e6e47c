"""GitHub webhook intake.

Usage
-----
Import the resource for route registration::

    from herald.api.webhooks.resources import GitHubWebhookResource
"""
