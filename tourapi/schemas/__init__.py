"""Pydantic schemas for request/response validation."""

from .common import *  # noqa: F403
from .tour import *  # noqa: F403
