"""Editor session owning the loaded pattern pieces and their controllers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from exporters.tiles import export_to_pdf as export_tiles

from . import edits
from .boolean import find_closed_region_at, perform
from .config import EditorConfig
from .grading import GradingTable, Measurements, Size, apply_parametric_measurements, grade
from .handles import HandleController, SegmentClick
from .layout import LayoutResult, NestItem, pack
from .path_model import Notch, PathModel
from .presets import build_preset, default_grading_table
from .render import Primitive
from .seam_allowance import DEFAULT_ALLOWANCE_MM, seam_allowance
from .seams import SeamStatus
from .snapping import SnapResolver

logger = logging.getLogger(__name__)


class EditorSession:
    """Host-facing command surface for a set of pattern pieces.

    Commands look pieces up by id. Unknown ids and out-of-range indices are
    logged and reported through a ``None``/``False`` return instead of raising.
    """

    def __init__(
        self,
        config: EditorConfig | None = None,
        *,
        grading_table: GradingTable | None = None,
        on_segment_click: Callable[[SegmentClick], None] | None = None,
        on_redraw: Callable[[], None] | None = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.grading_table = grading_table or self.config.grading.load_table() or default_grading_table()
        self.resolver = SnapResolver(self.config.snap)
        self.on_segment_click = on_segment_click
        self.on_redraw = on_redraw
        self.paths: dict[str, PathModel] = {}
        self.controllers: dict[str, HandleController] = {}

    # registry ------------------------------------------------------------

    def add_path(self, path: PathModel | Mapping[str, Any]) -> PathModel:
        model = path if isinstance(path, PathModel) else PathModel.from_mapping(path)
        self.paths[model.path_id] = model
        self.controllers[model.path_id] = HandleController(
            model,
            self.paths,
            resolver=self.resolver,
            tolerance=self.config.seam,
            on_segment_click=self.on_segment_click,
            on_redraw=self.on_redraw,
        )
        return model

    def remove_path(self, path_id: str) -> bool:
        if self.paths.pop(path_id, None) is None:
            logger.debug("Cannot remove unknown path %s", path_id)
            return False
        self.controllers.pop(path_id, None)
        return True

    def get(self, path_id: str) -> PathModel | None:
        path = self.paths.get(path_id)
        if path is None:
            logger.debug("Unknown path id %s", path_id)
        return path

    def controller(self, path_id: str) -> HandleController | None:
        controller = self.controllers.get(path_id)
        if controller is None:
            logger.debug("No controller for path id %s", path_id)
        return controller

    def load_preset(self, style: str) -> list[PathModel]:
        try:
            pieces = build_preset(style)
        except KeyError as exc:
            logger.warning("%s", exc.args[0])
            return []
        return [self.add_path(piece) for piece in pieces]

    # editing -------------------------------------------------------------

    def toggle_edit_mode(self, path_id: str) -> bool | None:
        controller = self.controller(path_id)
        if controller is None:
            return None
        return controller.toggle_edit_mode()

    def _structural(self, path_id: str, edit: Callable[[PathModel], bool]) -> bool:
        controller = self.controller(path_id)
        if controller is None:
            return False
        changed = edit(controller.path)
        if changed:
            controller.refresh(structure_changed=True)
        return changed

    def mirror(self, path_id: str) -> bool:
        return self._structural(path_id, edits.mirror)

    def split_segment(self, path_id: str, index: int) -> bool:
        return self._structural(path_id, lambda path: edits.split_segment(path, index))

    def toggle_node_type(self, path_id: str, index: int) -> bool:
        return self._structural(path_id, lambda path: edits.toggle_node_type(path, index))

    def set_segment_length(self, path_id: str, index: int, length_mm: float) -> bool:
        controller = self.controller(path_id)
        if controller is None:
            return False
        changed = edits.set_segment_length(controller.path, index, length_mm)
        if changed:
            controller.check_seams()
            controller.refresh()
        return changed

    def adjust_distance(self, path_id: str, first: int, second: int, length_mm: float) -> bool:
        controller = self.controller(path_id)
        if controller is None:
            return False
        changed = edits.adjust_distance(controller.path, first, second, length_mm)
        if changed:
            controller.check_seams()
            controller.refresh()
        return changed

    def translate(self, path_id: str, dx: float, dy: float) -> bool:
        controller = self.controller(path_id)
        if controller is None:
            return False
        edits.translate(controller.path, dx, dy)
        controller.refresh()
        return True

    def add_notch_at(self, path_id: str, index: int) -> bool:
        """Place a notch on an anchor and mirror it onto the counterpart."""

        controller = self.controller(path_id)
        if controller is None:
            return False
        path = controller.path
        if path.anchor(index) is None:
            logger.debug("No anchor %s on %s for a notch", index, path_id)
            return False
        path.notches.append(Notch(index))
        controller.linker.propagate_notch(index)
        controller.refresh()
        return True

    # grading -------------------------------------------------------------

    def grade(self, path_id: str, size: Size | str) -> PathModel | None:
        path = self.get(path_id)
        if path is None:
            return None
        try:
            target = Size.parse(size)
        except ValueError as exc:
            logger.warning("%s", exc)
            return None
        grade(path, target, self.grading_table)
        self.controllers[path_id].refresh(structure_changed=True)
        return path

    def apply_measurements(
        self, path_id: str, measurements: Measurements | Mapping[str, Any]
    ) -> PathModel | None:
        """Add a measurement-deformed copy of ``path_id`` to the session."""

        path = self.get(path_id)
        if path is None:
            return None
        if not isinstance(measurements, Measurements):
            try:
                measurements = Measurements.from_mapping(measurements)
            except (KeyError, ValueError, TypeError) as exc:
                logger.warning("Ignoring measurements for %s: %s", path_id, exc)
                return None
        settings = self.config.grading
        derived = apply_parametric_measurements(
            path,
            measurements,
            base_bust=settings.base_bust,
            base_length=settings.base_length,
        )
        derived.counterpart_id = None
        return self.add_path(derived)

    # diagnostics and derived output -------------------------------------

    def seam_status(self, path_id: str) -> list[SeamStatus]:
        controller = self.controller(path_id)
        if controller is None:
            return []
        return controller.check_seams()

    def seam_allowance(self, path_id: str, offset_mm: float = DEFAULT_ALLOWANCE_MM) -> PathModel | None:
        path = self.get(path_id)
        if path is None:
            return None
        allowance = seam_allowance(path, offset_mm)
        if allowance is None:
            return None
        return self.add_path(allowance)

    def boolean(self, first_id: str, second_id: str, operation: str) -> list[PathModel]:
        """Add the pieces produced by combining two pieces; inputs are kept."""

        first = self.get(first_id)
        second = self.get(second_id)
        if first is None or second is None:
            return []
        try:
            results = perform(first, second, operation)
        except ValueError:
            logger.warning("Unknown boolean operation %r", operation)
            return []
        return [self.add_path(piece) for piece in results]

    def find_region(self, point: tuple[float, float]) -> PathModel | None:
        """Add the closed cell under a scene point, formed by crossing outlines."""

        region = find_closed_region_at(list(self.paths.values()), point)
        if region is None:
            return None
        return self.add_path(region)

    def nest(
        self,
        quantities: Mapping[str, int] | None = None,
        *,
        fabric_width: float | None = None,
        margin: float | None = None,
    ) -> LayoutResult:
        """Row-pack every piece, or only those named in ``quantities``."""

        settings = self.config.layout
        if quantities is None:
            items = [NestItem(path) for path in self.paths.values()]
        else:
            items = []
            for path_id, quantity in quantities.items():
                path = self.get(path_id)
                if path is not None:
                    items.append(NestItem(path, quantity))
        return pack(
            items,
            fabric_width=settings.fabric_width if fabric_width is None else fabric_width,
            margin=settings.margin if margin is None else margin,
        )

    def export_to_pdf(
        self, path: Path | str | None = None, *, pieces: Iterable[PathModel] | None = None
    ) -> bytes | None:
        selected = list(self.paths.values()) if pieces is None else list(pieces)
        return export_tiles(selected, path, settings=self.config.export)

    def display_list(self, path_id: str | None = None) -> list[Primitive]:
        if path_id is not None:
            controller = self.controller(path_id)
            return controller.display_list() if controller is not None else []
        items: list[Primitive] = []
        for controller in self.controllers.values():
            items.extend(controller.display_list())
        return items

    def to_payload(self) -> dict[str, Any]:
        return {"paths": [path.to_mapping() for path in self.paths.values()]}


__all__ = ["EditorSession"]
