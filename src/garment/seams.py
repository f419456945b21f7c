"""Counterpart seam linking and seam-length diagnostics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Mapping

from .path_model import Notch, PathModel

logger = logging.getLogger(__name__)

SeamState = Literal["ok", "warn", "fail"]

HEM_LABEL_TOKEN = "hem"


@dataclass(frozen=True, slots=True)
class SeamTolerance:
    """Length-difference thresholds, in millimetres, for mating seams."""

    ok: float = 1.5
    warn: float = 3.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "SeamTolerance":
        return cls(ok=float(payload.get("ok", 1.5)), warn=float(payload.get("warn", 3.0)))

    def classify(self, diff: float) -> SeamState:
        if diff > self.warn:
            return "fail"
        if diff > self.ok:
            return "warn"
        return "ok"


@dataclass(frozen=True, slots=True)
class SeamStatus:
    label: str
    segment_index: int
    length: float
    counterpart_length: float
    diff: float
    status: SeamState

    def to_mapping(self) -> dict[str, object]:
        return {
            "label": self.label,
            "segmentIndex": self.segment_index,
            "length": round(self.length, 3),
            "counterpartLength": round(self.counterpart_length, 3),
            "diff": round(self.diff, 3),
            "status": self.status,
        }


class SeamLinker:
    """Keep labelled seam points of ``path`` in step with its counterpart.

    ``registry`` is the session's id-to-path lookup. The counterpart is only
    ever written through existing coordinate slots; its structure is never
    changed from here.
    """

    def __init__(
        self,
        path: PathModel,
        registry: Mapping[str, PathModel],
        *,
        tolerance: SeamTolerance | None = None,
    ) -> None:
        self.path = path
        self.registry = registry
        self.tolerance = tolerance or SeamTolerance()

    def counterpart(self) -> PathModel | None:
        counterpart_id = self.path.counterpart_id
        if not counterpart_id:
            return None
        counterpart = self.registry.get(counterpart_id)
        if counterpart is None:
            logger.debug("Counterpart %s of %s is not loaded", counterpart_id, self.path.path_id)
        return counterpart

    def sync(self, label: str, x: float, y: float) -> bool:
        """Copy a moved labelled anchor onto the counterpart's matching anchor.

        Hem points only carry their Y coordinate across.
        """

        counterpart = self.counterpart()
        if counterpart is None:
            return False
        index = counterpart.label_index(label)
        current = counterpart.anchor(index) if index is not None else None
        if index is None or current is None:
            logger.debug("No counterpart point labelled %r on %s", label, counterpart.path_id)
            return False
        if HEM_LABEL_TOKEN in label.lower():
            target = (current[0], float(y))
        else:
            target = (float(x), float(y))
        return counterpart.set_slot(index, "anchor", target)

    def seam_status(self) -> list[SeamStatus]:
        counterpart = self.counterpart()
        if counterpart is None:
            return []
        results: list[SeamStatus] = []
        for index in sorted(self.path.join_points):
            label = self.path.point_labels.get(index)
            if not label:
                continue
            other_index = counterpart.label_index(label)
            if other_index is None:
                logger.debug("Join label %r has no match on %s", label, counterpart.path_id)
                continue
            length = self.path.segment_length(index)
            other_length = counterpart.segment_length(other_index)
            diff = abs(length - other_length)
            results.append(
                SeamStatus(
                    label=label,
                    segment_index=index,
                    length=length,
                    counterpart_length=other_length,
                    diff=diff,
                    status=self.tolerance.classify(diff),
                )
            )
        return results

    def propagate_notch(self, index: int) -> bool:
        label = self.path.point_labels.get(index)
        if not label:
            return False
        counterpart = self.counterpart()
        if counterpart is None:
            return False
        other_index = counterpart.label_index(label)
        if other_index is None:
            logger.debug("Notch label %r has no match on %s", label, counterpart.path_id)
            return False
        counterpart.notches.append(Notch(other_index))
        return True


def link_counterparts(first: PathModel, second: PathModel) -> None:
    """Register ``first`` and ``second`` as each other's counterpart."""

    first.counterpart_id = second.path_id
    second.counterpart_id = first.path_id


__all__ = [
    "SeamLinker",
    "SeamState",
    "SeamStatus",
    "SeamTolerance",
    "link_counterparts",
]
