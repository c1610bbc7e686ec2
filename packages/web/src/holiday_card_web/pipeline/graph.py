from __future__ import annotations

from typing import Iterable, Iterator

from .stage import Stage


class GraphError(ValueError):
    """Unknown stage id, duplicate id, or a prerequisite cycle."""


class StageGraph:
    """
    Directed acyclic graph of stages keyed by stage_id.

    Edges come from each stage's `requires`. Adding a stage never
    changes control flow elsewhere: callers ask for the closure of a
    target with `order_for` and run the result top to bottom.
    """

    def __init__(self, stages: Iterable[Stage] = ()) -> None:
        self._stages: dict[str, Stage] = {}
        for st in stages:
            self.add(st)

    def add(self, stage: Stage) -> None:
        if stage.stage_id in self._stages:
            raise GraphError(f"Duplicate stage_id: {stage.stage_id}")
        self._stages[stage.stage_id] = stage

    def __iter__(self) -> Iterator[Stage]:
        return iter(self._stages.values())

    def get(self, stage_id: str) -> Stage:
        try:
            return self._stages[stage_id]
        except KeyError:
            raise GraphError(f"Unknown stage_id: {stage_id}") from None

    def requires(self, stage_id: str) -> tuple[str, ...]:
        return tuple(self.get(stage_id).requires)

    def order_for(self, *targets: str) -> list[Stage]:
        """
        Prerequisite closure of `targets` in topological order.

        Depth-first post-order; prerequisites are visited in declaration
        order so the result is deterministic.
        """
        done: set[str] = set()
        visiting: list[str] = []
        out: list[Stage] = []

        def visit(sid: str) -> None:
            if sid in done:
                return
            if sid in visiting:
                cycle = visiting[visiting.index(sid) :] + [sid]
                raise GraphError(f"Prerequisite cycle: {' -> '.join(cycle)}")
            stage = self.get(sid)
            visiting.append(sid)
            for dep in stage.requires:
                visit(dep)
            visiting.pop()
            done.add(sid)
            out.append(stage)

        for t in targets:
            visit(t)
        return out

    def validate(self) -> None:
        """Raise GraphError if any edge dangles or any cycle exists."""
        self.order_for(*self._stages.keys())
