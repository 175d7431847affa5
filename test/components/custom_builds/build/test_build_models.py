"""Tests for the build API models."""

import pytest
from pydantic import ValidationError

from custom_builds.build import models


def test_strategies_are_mutually_exclusive() -> None:
    with pytest.raises(ValidationError):
        models.BuildStrategy.model_validate(
            {
                "customStrategy": {"from": {"name": "builder"}},
                "dockerStrategy": {},
            }
        )


def test_strategy_can_be_empty() -> None:
    strategy = models.BuildStrategy()

    assert strategy.customStrategy is None


def test_builds_are_read_only(build_factory) -> None:
    build = build_factory()

    with pytest.raises(ValidationError):
        build.metadata = models.Metadata(name="other")


def test_from_alias(build_factory) -> None:
    build = build_factory()

    assert build.spec.strategy.customStrategy.from_.name == "quay.io/builders/custom:1.0"
    dumped = build.model_dump(by_alias=True)
    assert dumped["spec"]["strategy"]["customStrategy"]["from"]["name"] == "quay.io/builders/custom:1.0"


def test_completion_deadline_must_be_positive(build_factory) -> None:
    with pytest.raises(ValidationError):
        build_factory(completionDeadlineSeconds=0)
