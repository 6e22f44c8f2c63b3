from __future__ import annotations

from typing import List

from beatcut.application.pipeline.base import Middleware, Pipeline, Step


class PipelineFactory:
    """Fluent builder for Pipelines, with optional middlewares per step.

    Example:
        factory = PipelineFactory()
        pipeline = factory.add(step1).add(step2).build()
    """

    def __init__(
        self, *, middlewares: List[Middleware] | None = None, fail_fast: bool = True
    ):
        self._steps: List[Step] = []
        self._middlewares = list(middlewares or [])
        self._fail_fast = fail_fast

    def add(self, step: Step) -> "PipelineFactory":
        wrapped = step
        for mw in self._middlewares:
            wrapped = mw(wrapped)
        self._steps.append(wrapped)
        return self

    def build(self) -> Pipeline:
        if not self._steps:
            raise ValueError("Cannot build a pipeline without steps")
        return Pipeline(list(self._steps), fail_fast=self._fail_fast)
