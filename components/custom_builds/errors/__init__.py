"""Errors package."""

from custom_builds.errors.errors import *  # noqa: F403
