"""Commit webhook resource.

Usage
-----
Import the resource for route registration::

    from gitfriends.api.webhook.resources import WebhookDependencies, WebhookResource
"""
