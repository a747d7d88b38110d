"""Liveness and readiness resources.

Usage
-----
Import health resources for route registration::

    from gitfriends.api.health.resources import HealthResource, ReadyResource
"""
