"""Fixtures for testing."""

import logging as ll
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from custom_builds.app_config import logging
from custom_builds.build import models
from custom_builds.build.codec import EncodingRegistry, default_registry
from custom_builds.build.custom_strategy import CustomBuildPodStrategy


def __make_logging_config() -> logging.Config:
    def_cfg = logging.Config(
        root_level=ll.ERROR,
        app_level=ll.ERROR,
        format_style=logging.LogFormatStyle.plain,
    )
    test_cfg = logging.Config.from_env(prefix="TEST_")
    def_cfg.update_override_levels(test_cfg.override_levels)
    return def_cfg


logging.configure_logging(__make_logging_config())


@pytest.fixture(scope="session")
def monkeysession() -> Iterator[pytest.MonkeyPatch]:
    mpatch = pytest.MonkeyPatch()
    yield mpatch
    mpatch.undo()


@pytest.fixture(scope="session")
def registry() -> EncodingRegistry:
    return default_registry()


@pytest.fixture
def custom_strategy(registry: EncodingRegistry) -> CustomBuildPodStrategy:
    return CustomBuildPodStrategy(registry=registry)


@pytest.fixture
def build_factory() -> Callable[..., models.Build]:
    """Create builds with a custom strategy, any part can be overridden with raw API data."""

    def _make_build(
        name: str = "app-1",
        namespace: str = "builds",
        strategy: dict[str, Any] | None = None,
        source: dict[str, Any] | None = None,
        output: dict[str, Any] | None = None,
        **spec: Any,
    ) -> models.Build:
        if strategy is None:
            strategy = {"customStrategy": {"from": {"kind": "DockerImage", "name": "quay.io/builders/custom:1.0"}}}
        return models.Build.model_validate(
            {
                "metadata": {"name": name, "namespace": namespace, "uid": "2b5d6d1c-uid"},
                "spec": {
                    "strategy": strategy,
                    "source": source if source is not None else {},
                    "output": output if output is not None else {},
                    **spec,
                },
            }
        )

    return _make_build
