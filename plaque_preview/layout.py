"""
Layout engine module for the Plaque Preview service.

This module handles:
- The static slot geometry for every supported plaque (card count)
- Per-topology spacing models
- Resolving caller adjustments (size, spacing, offset) into final slot rectangles
"""

from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from .errors import UnsupportedPlaqueTypeError
from .models import LayoutAdjustments


CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 900

# Gap between a slot boundary and the card drawn inside it
CARD_PADDING = 4


class SlotRect:
    """Represents a rectangle on the canvas."""

    __slots__ = ('x', 'y', 'width', 'height')

    def __init__(self, x: float, y: float, width: float, height: float):
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def inset(self, padding: float) -> 'SlotRect':
        """Shrink by padding on every side."""
        return SlotRect(self.x + padding, self.y + padding,
                        self.width - 2 * padding, self.height - 2 * padding)

    def pixel_box(self) -> Tuple[int, int, int, int]:
        """Integer (left, top, width, height), never smaller than 1x1."""
        return (int(round(self.x)), int(round(self.y)),
                max(1, int(round(self.width))), max(1, int(round(self.height))))

    def contained_in(self, width: int, height: int) -> bool:
        return self.x >= 0 and self.y >= 0 and self.right <= width and self.bottom <= height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SlotRect):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __hash__(self) -> int:
        return hash(self.as_tuple())

    def __repr__(self) -> str:
        return f"SlotRect({self.x}, {self.y}, {self.width}, {self.height})"


class Layout:
    """Canvas size plus the ordered slots for one plaque type."""

    def __init__(self, plaque_type: int, slots: List[SlotRect], topology: str,
                 width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT):
        self.plaque_type = plaque_type
        self.topology = topology
        self.width = width
        self.height = height
        self._slots = tuple(slots)

    @property
    def slots(self) -> Tuple[SlotRect, ...]:
        return self._slots

    @property
    def slot_count(self) -> int:
        return len(self._slots)

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def __repr__(self) -> str:
        return f"Layout({self.plaque_type}, {self.topology}, {self.slot_count} slots)"


def _row(y: int, xs: List[int], width: int, height: int) -> List[SlotRect]:
    return [SlotRect(x, y, width, height) for x in xs]


LAYOUTS: Dict[int, Layout] = {
    # Larger cards, centered in a single row
    4: Layout(4, _row(300, [150, 400, 650, 900], 220, 308), 'single_row'),
    # Three on top, two centered underneath
    5: Layout(5, _row(180, [250, 500, 750], 200, 280)
                 + _row(480, [375, 625], 200, 280), 'split_3_2'),
    6: Layout(6, _row(200, [250, 500, 750], 180, 252)
                 + _row(500, [250, 500, 750], 180, 252), 'grid_3x2'),
    # Two rows of three with a single card centered below
    7: Layout(7, _row(120, [300, 520, 740], 160, 224)
                 + _row(370, [300, 520, 740], 160, 224)
                 + _row(620, [520], 160, 224), 'pyramid_3_3_1'),
    8: Layout(8, _row(135, [180, 440, 700, 960], 240, 336)
                 + _row(513, [180, 440, 700, 960], 240, 336), 'grid_4x2'),
    9: Layout(9, _row(90, [270, 480, 690], 150, 210)
                 + _row(330, [270, 480, 690], 150, 210)
                 + _row(570, [270, 480, 690], 150, 210), 'grid_3x3'),
    10: Layout(10, _row(200, [120, 300, 480, 660, 840], 140, 196)
                  + _row(450, [120, 300, 480, 660, 840], 140, 196), 'grid_5x2'),
}

SUPPORTED_PLAQUE_TYPES = sorted(LAYOUTS)


def get_layout(plaque_type) -> Layout:
    """Look up the layout for a plaque type, rejecting unsupported counts."""
    try:
        key = int(plaque_type)
    except (TypeError, ValueError):
        raise UnsupportedPlaqueTypeError(plaque_type, SUPPORTED_PLAQUE_TYPES)

    layout = LAYOUTS.get(key)
    if layout is None:
        raise UnsupportedPlaqueTypeError(plaque_type, SUPPORTED_PLAQUE_TYPES)
    return layout


class SpacingModel:
    """
    How one topology spreads its cards apart.

    `grid_position` maps a slot index to a (column, row) pair; columns may be
    fractional for rows that sit between the columns above them. Each step of
    spacing adjustment moves a slot by column * x_step and row * y_step pixels.
    """

    def __init__(self, grid_position: Callable[[int], Tuple[float, float]], x_step: float, y_step: float):
        self.grid_position = grid_position
        self.x_step = x_step
        self.y_step = y_step

    def displacement(self, slot_index: int, spacing_adjustment: float) -> Tuple[float, float]:
        delta = spacing_adjustment - 100
        column, row = self.grid_position(slot_index)
        return (column * delta * self.x_step, row * delta * self.y_step)


def _grid(columns: int) -> Callable[[int], Tuple[float, float]]:
    return lambda index: (index % columns, index // columns)


def _single_row(index: int) -> Tuple[float, float]:
    return (index, 0)


def _split_3_2(index: int) -> Tuple[float, float]:
    if index < 3:
        return (index, 0)
    # bottom pair sits between the top columns
    return (index - 3 + 0.5, 1)


def _pyramid_3_3_1(index: int) -> Tuple[float, float]:
    if index < 6:
        return (index % 3, index // 3)
    # the lone bottom card is under the middle column
    return (1, 2)


SPACING_MODELS: Dict[int, SpacingModel] = {
    4: SpacingModel(_single_row, 2.5, 0),
    5: SpacingModel(_split_3_2, 2.5, 3),
    6: SpacingModel(_grid(3), 2.5, 3),
    7: SpacingModel(_pyramid_3_3_1, 2.2, 2.5),
    8: SpacingModel(_grid(4), 2.3, 3.8),
    9: SpacingModel(_grid(3), 2.1, 2.4),
    10: SpacingModel(_grid(5), 1.8, 2.5),
}


def resolve_slot(base: SlotRect, slot_index: int, plaque_type: int,
                 adjustments: Optional[LayoutAdjustments] = None) -> SlotRect:
    """
    Apply size, spacing and global offset adjustments to one slot.

    Size scales from the top-left corner. Neutral adjustments return a
    rectangle equal to `base`.
    """
    if adjustments is None:
        adjustments = LayoutAdjustments()

    model = SPACING_MODELS[int(plaque_type)]
    spacing_x, spacing_y = model.displacement(slot_index, adjustments.card_spacing_adjustment)

    size = adjustments.card_size_adjustment
    return SlotRect(
        base.x + spacing_x + adjustments.horizontal_offset_px,
        base.y + spacing_y + adjustments.vertical_offset_px,
        base.width * size / 100,
        base.height * size / 100,
    )


def resolve_layout(layout: Layout, adjustments: Optional[LayoutAdjustments] = None) -> List[SlotRect]:
    """Resolve every slot of a layout, in slot order."""
    resolved = [
        resolve_slot(slot, index, layout.plaque_type, adjustments)
        for index, slot in enumerate(layout.slots)
    ]
    if adjustments is not None and not adjustments.is_neutral:
        logger.debug(f"Resolved {len(resolved)} slots for plaque {layout.plaque_type} "
                     f"with adjustments {adjustments.model_dump()}")
    return resolved
