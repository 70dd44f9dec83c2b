from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from domain.models import Behavior
from domain.services.build_behavior_geometry import BehaviorLayoutBuilder, BehaviorLayoutConfig
from domain.services.build_layout_request import LayoutRequestBuilder
from tests.helpers.fakes import FixedTextMeasurer


def _clear_bdl_env() -> None:
    for key in list(os.environ):
        if key.startswith("BDL_"):
            os.environ.pop(key, None)


_clear_bdl_env()


@pytest.fixture(autouse=True)
def clear_bdl_env() -> Generator[None, None, None]:
    _clear_bdl_env()
    yield
    _clear_bdl_env()


@pytest.fixture
def measurer() -> FixedTextMeasurer:
    return FixedTextMeasurer()


@pytest.fixture
def behavior_builder(measurer: FixedTextMeasurer) -> BehaviorLayoutBuilder:
    return BehaviorLayoutBuilder(measurer, BehaviorLayoutConfig())


@pytest.fixture
def request_builder(behavior_builder: BehaviorLayoutBuilder) -> LayoutRequestBuilder:
    return LayoutRequestBuilder(behavior_builder)


@pytest.fixture
def behavior_factory() -> Callable[..., Behavior]:
    def _factory(
        behavior_id: str,
        extent: str = "main",
        demands: list[str] | None = None,
        supplies: list[str] | None = None,
        dynamic_demands: set[str] | None = None,
        dynamic_supplies: set[str] | None = None,
        rewires: list[str] | None = None,
    ) -> Behavior:
        payload: dict = {
            "id": behavior_id,
            "extent": extent,
            "demands": [
                {"resourceId": name, "dynamic": name in (dynamic_demands or set())}
                for name in demands or []
            ],
            "supplies": [
                {"resourceId": name, "dynamic": name in (dynamic_supplies or set())}
                for name in supplies or []
            ],
        }
        if rewires is not None:
            payload["rewires"] = {"order": "pre", "targets": rewires}
        return Behavior.model_validate(payload)

    return _factory
