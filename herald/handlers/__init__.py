"""Webhook event handlers and the router that dispatches to them."""

from __future__ import annotations

from .base import DefaultHandler, EventHandler, HandlerContext, InboundEvent
from .check_run import CheckRunHandler, CheckSuiteHandler
from .comments import CommentHandler
from .deployment import DeploymentHandler
from .errors import MissingPayloadError
from .pull_request import PullRequestHandler, PullRequestReviewHandler
from .router import EventRouter, build_event_router

__all__ = [
    "CheckRunHandler",
    "CheckSuiteHandler",
    "CommentHandler",
    "DefaultHandler",
    "DeploymentHandler",
    "EventHandler",
    "EventRouter",
    "HandlerContext",
    "InboundEvent",
    "MissingPayloadError",
    "PullRequestHandler",
    "PullRequestReviewHandler",
    "build_event_router",
]
