"""Health probe resources.

Usage
-----
Import health resources for route registration::

    from herald.api.health.resources import HealthResource, ReadyResource
"""
