#!/usr/bin/env python3
"""spider_chart.py

Turns a small key-path text description of a radial ("spider"/radar) chart
into an SVG drawing that fits its canvas, labels included.

Pipeline:
- Key-path resolution: `key tokens: value` lines, where an indented line
  inherits the unwritten prefix of the previous key path.
- Validation into a typed ChartModel, failing on the first bad line.
- Two-pass autoscaling layout: measure how far the spoke labels overflow the
  canvas at unit scale, shrink accordingly, then lay out the chart body.
- SVG emission.

Run:
  python spider_chart.py render chart.txt output.svg
  python spider_chart.py validate chart.txt
  python spider_chart.py example chart.txt
  python spider_chart.py --help
"""

from __future__ import annotations

import argparse
import logging
import math
import os
import re
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Literal, NamedTuple

log = logging.getLogger(__name__)

Point = tuple[float, float]
TextMeasurer = Callable[[str, float], float]
Orientation = Literal["first_radius", "first_side", "last_side"]


# -------------------------
# Errors
# -------------------------


class ChartError(ValueError):
    """A chart document problem, pinned to a 1-based source line."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(message, line)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        return f"{self.message} at ln. {self.line}"


class ChartSyntaxError(ChartError):
    pass


class DuplicateKeyError(ChartError):
    pass


class ImproperValueError(ChartError):
    pass


class ValueRangeError(ChartError):
    pass


class ConsistencyError(ChartError):
    pass


class MissingPropertyError(ConsistencyError):
    pass


class UnknownPropertyError(ChartError):
    pass


def _require(
    cond: bool, msg: str, line: int, cls: type[ChartError] = ConsistencyError
) -> None:
    if not cond:
        raise cls(msg, line)


# -------------------------
# Key-path resolution
# -------------------------


class RawLine(NamedTuple):
    number: int
    text: str


# key string -> (line number, raw value)
KeyMap = dict[str, tuple[int, str]]

_SKIP_LINE_RE = re.compile(r"^\s*(#|$)")
_INDENT_RE = re.compile(r"^\s+")
_NEWLINE_RE = re.compile(r"\r?\n")


def read_lines(text: str) -> list[RawLine]:
    """Number the lines of `text` from 1, dropping blanks and comments."""
    return [
        RawLine(number, ln)
        for number, ln in enumerate(_NEWLINE_RE.split(text), start=1)
        if not _SKIP_LINE_RE.match(ln)
    ]


def resolve_key_paths(lines: Iterable[RawLine]) -> KeyMap:
    """Resolve `key: value` lines into an ordered key map.

    An indented line is a continuation: its N key tokens replace the last N
    tokens of the active key path. A non-indented line replaces the active
    key path outright. Resolving the same key twice is an error.
    """
    stack: list[str] = []
    out: KeyMap = {}

    for number, ln in lines:
        _require(":" in ln, "Parsing error", number, ChartSyntaxError)

        indent = _INDENT_RE.match(ln)
        if indent:
            ln = ln[indent.end() :]

        key_part, _, value = ln.partition(":")
        tokens = key_part.split()
        if indent:
            stack = stack[: max(0, len(stack) - len(tokens))] + tokens
        else:
            stack = tokens
        key = " ".join(stack)

        _require(key not in out, "Duplicate key", number, DuplicateKeyError)
        out[key] = (number, value.lstrip())

    log.debug("resolved %d keys", len(out))
    return out


# -------------------------
# Chart model
# -------------------------


@dataclass(frozen=True)
class ChartEntry:
    color: str
    data: list[int]


@dataclass(frozen=True)
class ChartModel:
    width: int
    height: int
    margin: int

    background: str
    text_color: str
    stroke_color: str
    interval_background: str
    interval_stroke_color: str

    text_size: int
    main_stroke_width: int
    entry_stroke_width: int
    filled_entries: bool

    scale: int
    # None disables interval rings and their labels
    intervals: int | None
    top: Orientation

    radii: list[str]
    entries: list[ChartEntry]
    interval_labels: list[str]
    hide_labels: bool

    @property
    def num_radii(self) -> int:
        return len(self.radii)

    @property
    def num_entries(self) -> int:
        return len(self.entries)

    def ring_values(self) -> list[int]:
        """Scale values that get an interval ring, from 0 up to scale."""
        if self.intervals is None:
            return []
        return list(range(0, self.scale + 1, self.intervals))


@dataclass
class _EntryDraft:
    color: str | None = None
    data: list[int] | None = None
    # source lines of the two fields, 0 while unset
    color_line: int = 0
    data_line: int = 0


@dataclass
class _ChartDraft:
    width: int = 0
    height: int = 0
    margin: int = 0
    background: str = ""
    text_color: str = ""
    stroke_color: str = ""
    interval_background: str | None = None
    interval_stroke_color: str | None = None
    text_size: int = 0
    main_stroke_width: int = 0
    entry_stroke_width: int = 0
    filled_entries: bool = False
    scale: int = 0
    intervals: int | None = None
    top: Orientation = "first_radius"
    num_radii: int = 0
    num_entries: int = 0
    interval_labels: list[str] | None = None
    hide_labels: bool | None = None

    # 0-based index -> value
    radii: dict[int, str] = field(default_factory=dict)
    entries: dict[int, _EntryDraft] = field(default_factory=dict)


# -------------------------
# Validation
# -------------------------

_UINT_RE = re.compile(r"^\s*(\d+)\s*$", re.ASCII)
_SIZE_RE = re.compile(r"^\s*(\d+)\s*x\s*(\d+)\s*$", re.ASCII)
_WS_RE = re.compile(r"\s+")

_YES_NO = {"yes": True, "no": False}

_ORIENTATIONS: dict[str, Orientation] = {
    "first radius": "first_radius",
    "first side": "first_side",
    "last side": "last_side",
}

_MINIMUMS = {
    "radii": 3,
    "entries": 1,
    "scale": 1,
    "intervals": 1,
    "margin": 0,
    "text size": 8,
    "main stroke width": 1,
    "entry stroke width": 1,
}

_COUNT_ATTRS = {"radii": "num_radii", "entries": "num_entries"}

REQUIRED_KEYS = (
    "size",
    "margin",
    "background",
    "text color",
    "text size",
    "stroke color",
    "main stroke width",
    "entry stroke width",
    "filled entries",
    "scale",
    "intervals",
    "top",
    "radii",
    "entries",
)


def _parse_uint(text: str) -> int | None:
    m = _UINT_RE.match(text)
    return int(m.group(1)) if m else None


def _attr_name(key: str) -> str:
    return _COUNT_ATTRS.get(key, key.replace(" ", "_"))


def _improper(key: str, line: int) -> ImproperValueError:
    return ImproperValueError(f"Improper {key} declaration", line)


def _set_size(draft: _ChartDraft, key: str, val: str, line: int) -> None:
    m = _SIZE_RE.match(val)
    if m is None:
        raise _improper(key, line)
    width, height = int(m.group(1)), int(m.group(2))
    _require(
        width >= 1 and height >= 1,
        "Value for size must be at least 1",
        line,
        ValueRangeError,
    )
    draft.width, draft.height = width, height


def _set_text(draft: _ChartDraft, key: str, val: str, line: int) -> None:
    setattr(draft, _attr_name(key), val)


def _set_flag(draft: _ChartDraft, key: str, val: str, line: int) -> None:
    word = val.strip()
    if word not in _YES_NO:
        raise _improper(key, line)
    setattr(draft, _attr_name(key), _YES_NO[word])


def _set_top(draft: _ChartDraft, key: str, val: str, line: int) -> None:
    word = val.strip()
    if word not in _ORIENTATIONS:
        raise _improper(key, line)
    draft.top = _ORIENTATIONS[word]


def _set_interval_labels(draft: _ChartDraft, key: str, val: str, line: int) -> None:
    draft.interval_labels = _WS_RE.split(val.strip())


def _set_number(draft: _ChartDraft, key: str, val: str, line: int) -> None:
    num = _parse_uint(val)
    if num is None:
        if key == "intervals" and val.strip() == "none":
            draft.intervals = None
            return
        raise _improper(key, line)

    minimum = _MINIMUMS[key]
    _require(
        num >= minimum,
        f"Value for {key} must be at least {minimum}",
        line,
        ValueRangeError,
    )
    setattr(draft, _attr_name(key), num)


_Handler = Callable[[_ChartDraft, str, str, int], None]

_HANDLERS: dict[str, _Handler] = {
    "size": _set_size,
    "background": _set_text,
    "text color": _set_text,
    "stroke color": _set_text,
    "interval background": _set_text,
    "interval stroke color": _set_text,
    "filled entries": _set_flag,
    "hide labels": _set_flag,
    "top": _set_top,
    "interval labels": _set_interval_labels,
    **{key: _set_number for key in _MINIMUMS},
}


def _parse_index(token: str, what: str, line: int) -> int:
    idx = _parse_uint(token)
    if idx is None:
        raise ImproperValueError(f"Invalid {what} spec", line)
    _require(idx >= 1, f"{what.capitalize()} spec out of range", line, ValueRangeError)
    return idx


def _set_radius(draft: _ChartDraft, key: str, val: str, line: int) -> None:
    parts = key.split(" ")
    _require(len(parts) == 2, "Invalid radius spec", line, ImproperValueError)
    idx = _parse_index(parts[1], "radius", line)
    # First definition of an index wins; later ones are ignored.
    draft.radii.setdefault(idx - 1, val)


def _set_entry(draft: _ChartDraft, key: str, val: str, line: int) -> None:
    parts = key.split(" ")
    _require(len(parts) == 3, "Invalid entry spec", line, ImproperValueError)
    idx = _parse_index(parts[1], "entry", line)
    entry = draft.entries.setdefault(idx - 1, _EntryDraft())

    characteristic = parts[2]
    if characteristic == "data":
        _require(
            entry.data is None,
            f"Duplicate definition of entry {idx}'s data.",
            line,
            DuplicateKeyError,
        )
        nums = [_parse_uint(tok) for tok in _WS_RE.split(val.strip())]
        for pos, num in enumerate(nums, start=1):
            _require(
                num is not None,
                f"Data property {pos} is not a number.",
                line,
                ImproperValueError,
            )
        entry.data = [n for n in nums if n is not None]
        entry.data_line = line
    elif characteristic == "color":
        # Unlike radius labels, the last color wins.
        entry.color = val
        entry.color_line = line
    else:
        raise UnknownPropertyError(
            f"Unknown characteristic '{characteristic}' of entry.", line
        )


def _dispatch(key: str) -> _Handler | None:
    handler = _HANDLERS.get(key)
    if handler is not None:
        return handler
    if key.startswith("radius "):
        return _set_radius
    if key.startswith("entry "):
        return _set_entry
    return None


def _contiguous(indices: Iterable[int], count: int) -> bool:
    return set(indices) == set(range(count))


def validate(keys: KeyMap) -> ChartModel:
    """Build a ChartModel from a resolved key map.

    Raises the ChartError subclass for the first problem found: per-line
    problems in document order, then missing properties, then the
    cross-property checks.
    """
    draft = _ChartDraft()

    for key, (line, val) in keys.items():
        handler = _dispatch(key)
        if handler is None:
            raise UnknownPropertyError(f"Invalid property '{key}'", line)
        handler(draft, key, val, line)

    last_line = max((line for line, _ in keys.values()), default=1)
    for key in REQUIRED_KEYS:
        _require(
            key in keys, f"Missing property '{key}'", last_line, MissingPropertyError
        )

    def line_of(key: str) -> int:
        return keys[key][0]

    if draft.intervals is not None:
        _require(
            draft.intervals < draft.scale and draft.scale % draft.intervals == 0,
            "Intervals do not evenly fit into scale",
            line_of("intervals"),
        )
    _require(
        _contiguous(draft.radii.keys(), draft.num_radii),
        "Number of radii does not match defined radii",
        line_of("radii"),
    )
    _require(
        _contiguous(draft.entries.keys(), draft.num_entries),
        "Number of entries does not match defined entries",
        line_of("entries"),
    )

    if draft.intervals is None:
        interval_labels = draft.interval_labels or []
    elif draft.interval_labels is None:
        interval_labels = [
            str(v) for v in range(0, draft.scale + 1, draft.intervals)
        ]
    else:
        expected = draft.scale // draft.intervals + 1
        _require(
            len(draft.interval_labels) == expected,
            f"Incorrect number of interval labels (expected {expected})",
            line_of("interval labels"),
        )
        interval_labels = draft.interval_labels

    entries: list[ChartEntry] = []
    for idx in range(draft.num_entries):
        entry = draft.entries[idx]
        if entry.color is None:
            raise ConsistencyError(
                "Partially undefined graph entry", entry.data_line
            )
        if entry.data is None:
            raise ConsistencyError(
                "Partially undefined graph entry", entry.color_line
            )
        _require(
            len(entry.data) == draft.num_radii,
            "Number of data items does not match defined radii",
            entry.data_line,
        )
        entries.append(ChartEntry(color=entry.color, data=entry.data))

    model = ChartModel(
        width=draft.width,
        height=draft.height,
        margin=draft.margin,
        background=draft.background,
        text_color=draft.text_color,
        stroke_color=draft.stroke_color,
        interval_background=(
            draft.background
            if draft.interval_background is None
            else draft.interval_background
        ),
        interval_stroke_color=(
            draft.text_color
            if draft.interval_stroke_color is None
            else draft.interval_stroke_color
        ),
        text_size=draft.text_size,
        main_stroke_width=draft.main_stroke_width,
        entry_stroke_width=draft.entry_stroke_width,
        filled_entries=draft.filled_entries,
        scale=draft.scale,
        intervals=draft.intervals,
        top=draft.top,
        radii=[draft.radii[i] for i in range(draft.num_radii)],
        entries=entries,
        interval_labels=interval_labels,
        hide_labels=bool(draft.hide_labels),
    )
    log.debug(
        "validated chart: %dx%d, %d radii, %d entries, scale=%d intervals=%s",
        model.width,
        model.height,
        model.num_radii,
        model.num_entries,
        model.scale,
        model.intervals,
    )
    return model


def parse_chart(text: str) -> ChartModel:
    return validate(resolve_key_paths(read_lines(text)))


def load_chart(path: str) -> ChartModel:
    with open(path, encoding="utf-8") as f:
        return parse_chart(f.read())


# -------------------------
# Text measurement
# -------------------------

# Average advance of a sans-serif glyph, as a fraction of the font size.
DEFAULT_CHAR_WIDTH = 0.60


def make_text_estimator(char_width: float = DEFAULT_CHAR_WIDTH) -> TextMeasurer:
    """Return a measurer that assumes every glyph is `char_width` ems wide."""

    def measure(text: str, size: float) -> float:
        return len(text) * size * char_width

    return measure


estimate_text_width = make_text_estimator()


# -------------------------
# Layout
# -------------------------

# Chart body is drawn this much smaller than the computed fit.
BODY_SHRINK = 0.9
# Padding around interval label text.
BOX_PAD = 2.0


@dataclass(frozen=True)
class Extrema:
    left: float
    right: float
    top: float
    bottom: float


@dataclass(frozen=True)
class TextLabel:
    text: str
    # text is anchored at its horizontal middle and its baseline
    x: float
    y: float
    size: float


@dataclass(frozen=True)
class LabelBox:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class IntervalLabel:
    value: int
    box: LabelBox
    label: TextLabel


@dataclass(frozen=True)
class Ring:
    value: int
    points: list[Point]


@dataclass(frozen=True)
class EntryPolygon:
    color: str
    points: list[Point]


@dataclass(frozen=True)
class ChartGeometry:
    model: ChartModel
    center: Point
    scale_factor: float
    spokes: list[Point]
    rings: list[Ring]
    entries: list[EntryPolygon]
    interval_labels: list[IntervalLabel]
    axis_labels: list[TextLabel]

    @property
    def entry_fill_opacity(self) -> float:
        return 0.5 if self.model.filled_entries else 0.0


def get_extrema(points: Iterable[Point]) -> Extrema:
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for x, y in points:
        if x < min_x:
            min_x = x
        if x > max_x:
            max_x = x
        if y < min_y:
            min_y = y
        if y > max_y:
            max_y = y
    if min_x == math.inf:
        raise ValueError("get_extrema() called with no points")
    return Extrema(left=min_x, right=max_x, top=min_y, bottom=max_y)


def shorter_axis(model: ChartModel) -> int:
    return min(model.width, model.height)


def margin_fraction(model: ChartModel) -> float:
    short = shorter_axis(model)
    return 1 - (short - model.margin) / short


def calc_points(model: ChartModel, fac: float) -> list[Point]:
    """Spoke tips as offsets from the canvas centre.

    Spokes run clockwise from the top of the canvas; the whole star is
    rotated by half a sector for the side orientations.
    """
    n = model.num_radii
    rot = math.pi / n
    if model.top == "first_radius":
        rot = 0.0
    elif model.top == "last_side":
        rot = -rot

    length = shorter_axis(model) * fac
    points: list[Point] = []
    for i in range(n):
        rad = 2 * math.pi * i / n
        points.append(
            (
                math.sin(math.pi - rad + rot) * length,
                math.cos(math.pi - rad + rot) * length,
            )
        )
    return points


def _place(
    center: Point, offsets: list[Point], ratios: Iterable[float]
) -> list[Point]:
    cx, cy = center
    return [(cx + dx * r, cy + dy * r) for (dx, dy), r in zip(offsets, ratios)]


def _axis_labels(
    model: ChartModel,
    center: Point,
    offsets: list[Point],
    measure_text: TextMeasurer,
) -> tuple[list[TextLabel], list[Point]]:
    """Place spoke labels just outside the spoke tips.

    Returns the labels and the top-left/bottom-right corners of their boxes.
    """
    n = model.num_radii
    height = float(model.text_size)
    labels: list[TextLabel] = []
    corners: list[Point] = []

    tips = _place(center, offsets, [1.0] * n)
    for idx, (text, tip) in enumerate(zip(model.radii, tips)):
        width = measure_text(text, model.text_size)
        angle = 2 * math.pi * idx / n
        # Text sits on its baseline, hence the 0.5 shift.
        x = tip[0] + width / 2 * math.sin(angle)
        y = tip[1] - height / 2 * (math.cos(angle) - 0.5)

        corners.append((x - width / 2, y - height / 2))
        corners.append((x + width / 2, y + height / 2))
        labels.append(TextLabel(text=text, x=x, y=y, size=height))

    return labels, corners


def autoscale_factor(
    model: ChartModel, point_extrema: Extrema, label_extrema: Extrema
) -> float:
    """Ratio by which the unit chart must shrink so its labels fit the canvas.

    Both extrema are in canvas coordinates. The result is 1 when no label
    crosses the margin.
    """
    w, h = model.width, model.height
    m = margin_fraction(model)

    x_over = max(0.0, label_extrema.right - w * (1 - m), w * m - label_extrema.left)
    y_over = max(0.0, label_extrema.bottom - h * (1 - m), h * m - label_extrema.top)

    half_w = w / 2
    half_h = h / 2
    x_fac = (half_w - (point_extrema.left + x_over)) / (half_w - point_extrema.left)
    y_fac = (half_h - (point_extrema.top + y_over)) / (half_h - point_extrema.top)

    log.debug(
        "label overflow x=%.3f y=%.3f -> x_fac=%.4f y_fac=%.4f",
        x_over,
        y_over,
        x_fac,
        y_fac,
    )
    return min(x_fac, y_fac)


def layout(
    model: ChartModel, measure_text: TextMeasurer = estimate_text_width
) -> ChartGeometry:
    """Compute every drawable position for a validated chart."""
    center: Point = (model.width / 2, model.height / 2)
    n = model.num_radii

    # Pass 1: unit geometry, only used to measure label overflow.
    unit = calc_points(model, 1.0)
    point_extrema = get_extrema(_place(center, unit, [1.0] * n))
    _, corners = _axis_labels(model, center, unit, measure_text)
    factor = autoscale_factor(model, point_extrema, get_extrema(corners))
    if factor <= 0:
        log.warning(
            "labels too large for a %dx%d canvas (scale factor %.4f)",
            model.width,
            model.height,
            factor,
        )

    # Pass 2: chart body.
    body = calc_points(model, factor * BODY_SHRINK)
    spokes = _place(center, body, [1.0] * n)

    rings = [
        Ring(value=value, points=_place(center, body, [value / model.scale] * n))
        for value in model.ring_values()
    ]

    entries = [
        EntryPolygon(
            color=entry.color,
            points=_place(center, body, [v / model.scale for v in entry.data]),
        )
        for entry in model.entries
    ]

    interval_labels: list[IntervalLabel] = []
    if not model.hide_labels:
        size = model.text_size * 0.5
        max_offset = body[0][1]
        for pos, value in enumerate(model.ring_values()):
            text = model.interval_labels[pos]
            box_w = measure_text(text, size) + BOX_PAD
            box_h = size + BOX_PAD
            offset = value / model.scale * max_offset
            interval_labels.append(
                IntervalLabel(
                    value=value,
                    box=LabelBox(
                        x=center[0] - box_w / 2,
                        y=center[1] + offset - box_h / 2,
                        width=box_w,
                        height=box_h,
                    ),
                    label=TextLabel(
                        text=text,
                        x=center[0],
                        y=center[1] + offset + model.text_size * 0.25 - BOX_PAD / 2,
                        size=size,
                    ),
                )
            )

    # Labels go at the unshrunk fit, just outside the body.
    axis_labels, _ = _axis_labels(
        model, center, calc_points(model, factor), measure_text
    )

    log.debug(
        "layout done: factor=%.4f rings=%d entries=%d",
        factor,
        len(rings),
        len(entries),
    )
    return ChartGeometry(
        model=model,
        center=center,
        scale_factor=factor,
        spokes=spokes,
        rings=rings,
        entries=entries,
        interval_labels=interval_labels,
        axis_labels=axis_labels,
    )


# -------------------------
# SVG writing
# -------------------------


def _ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)


def _fmt(x: float, precision: int) -> str:
    # Normalise -0.0 so it never produces "-0" in SVG output.
    if not x:
        x = 0.0
    s = f"{x:.{precision}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s in ("-0", ""):
        s = "0"
    return s


def _escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _points_attr(points: list[Point], precision: int) -> str:
    return " ".join(f"{_fmt(x, precision)},{_fmt(y, precision)}" for x, y in points)


def _text_element(label: TextLabel, precision: int, cls: str | None = None) -> str:
    cls_attr = f' class="{cls}"' if cls else ""
    return (
        f'  <text{cls_attr} x="{_fmt(label.x, precision)}" '
        f'y="{_fmt(label.y, precision)}">{_escape(label.text)}</text>'
    )


def render_svg(geometry: ChartGeometry, *, precision: int = 3) -> str:
    model = geometry.model
    cx, cy = geometry.center

    def f(x: float) -> str:
        return _fmt(x, precision)

    lines: list[str] = []
    lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    lines.append(
        "<svg xmlns=\"http://www.w3.org/2000/svg\" version=\"1.1\" "
        f"viewBox=\"0 0 {model.width} {model.height}\" "
        f"width=\"{model.width}\" height=\"{model.height}\">"
    )

    lines.append("  <style>")
    lines.append(f"    svg {{ font: {model.text_size}px sans-serif; }}")
    lines.append(
        f"    text {{ text-anchor: middle; fill: {_escape(model.text_color)}; }}"
    )
    lines.append(
        f"    .entry {{ fill-opacity: {f(geometry.entry_fill_opacity * 100)}%; "
        f"stroke-width: {model.entry_stroke_width}; }}"
    )
    lines.append(
        f"    .stroke {{ stroke: {_escape(model.stroke_color)}; fill: none; "
        f"stroke-width: {model.main_stroke_width}; }}"
    )
    lines.append(
        f"    .desc-box {{ fill: {_escape(model.interval_background)}; "
        f"stroke: {_escape(model.interval_stroke_color)}; "
        f"stroke-width: {model.main_stroke_width}; }}"
    )
    lines.append(f"    .desc-text {{ font-size: {f(model.text_size / 2)}px; }}")
    lines.append("  </style>")

    lines.append(
        f'  <rect width="{model.width}" height="{model.height}" '
        f'fill="{_escape(model.background)}" />'
    )

    for ring in geometry.rings:
        lines.append(
            f'  <polygon class="stroke" '
            f'points="{_points_attr(ring.points, precision)}" />'
        )

    for x, y in geometry.spokes:
        lines.append(
            f'  <line class="stroke" x1="{f(cx)}" y1="{f(cy)}" '
            f'x2="{f(x)}" y2="{f(y)}" />'
        )

    # Later entries are painted on top.
    for poly in geometry.entries:
        color = _escape(poly.color)
        lines.append(
            f'  <polygon class="entry" style="stroke: {color}; fill: {color};" '
            f'points="{_points_attr(poly.points, precision)}" />'
        )

    for il in geometry.interval_labels:
        lines.append(
            f'  <rect class="desc-box" x="{f(il.box.x)}" y="{f(il.box.y)}" '
            f'width="{f(il.box.width)}" height="{f(il.box.height)}" />'
        )
        lines.append(_text_element(il.label, precision, "desc-text"))

    for label in geometry.axis_labels:
        lines.append(_text_element(label, precision))

    lines.append("</svg>")
    return "\n".join(lines) + "\n"


def write_svg(geometry: ChartGeometry, out_path: str, *, precision: int = 3) -> None:
    _ensure_parent_dir(out_path)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(render_svg(geometry, precision=precision))


# -------------------------
# Default document
# -------------------------

DEFAULT_DOCUMENT = """\
# Chart description: one 'key: value' per line.
# Lines starting with '#' are comments and blank lines are ignored. Runs of
# spaces inside a line are only for alignment, but indentation at the start
# of a line matters: it continues the key of the line above.

size: 400 x 400
margin: 10
background: white
#interval background: white
text color: black
text size: 16
stroke color: grey
#interval stroke color: black
main stroke width: 1
entry stroke width: 2
filled entries: yes

# Set intervals to 'none' to leave out the interval rings.
scale: 100
intervals: 20
#interval labels: E D C B A S
#hide labels: no

# Which way the chart points: 'first radius', 'first side' or 'last side'.
top: first radius

# One spoke per radius.
radii: 5
radius 1: Speed
       2: Reliability
       3: Comfort
       4: Safety
       5: Efficiency

# Entries are drawn in order, so later ones cover earlier ones when filled.
entries: 2
entry 1  data: 90 60 45 75 40
        color: #0000ff
      2  data: 60 80 60 30 90
        color: #ff8000
"""


def dump_text(text: str, path: str) -> None:
    _ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


# -------------------------
# Logging
# -------------------------


def setup_logging(level: int = logging.INFO) -> None:
    """Send this module's log records to stderr."""
    logger = logging.getLogger(__name__)
    logger.setLevel(level)

    # Avoid duplicate output when main() runs more than once per process.
    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
        )
    )
    logger.addHandler(handler)


# -------------------------
# CLI / Help
# -------------------------

HELP_EPILOG = r"""
CHART DOCUMENT SYNTAX

A chart document is plain UTF-8 text, one property per line:

    key words: value

Lines whose first non-blank character is '#' are comments. Blank lines are
ignored. Everything before the first ':' is the key; the value is the rest of
the line with leading spaces removed.

Continuation lines

  A line that starts with whitespace continues the key of the line above: its
  key words replace the same number of words at the END of the previous key.

    radius 1: Speed          -> radius 1
           2: Reliability    -> radius 2

    entry 1  data: 90 60 45  -> entry 1 data
            color: #0000ff   -> entry 1 color
          2  data: 60 80 60  -> entry 2 data

  Defining the same key twice is an error.

Properties

  size: <W> x <H>                 canvas size (required)
  margin: <int >= 0>              space kept free at the canvas edge (required)
  background: <color>             any SVG color, passed through (required)
  text color: <color>             (required)
  stroke color: <color>           spoke and ring color (required)
  interval background: <color>    interval label box fill (default: background)
  interval stroke color: <color>  interval label box outline (default: text color)
  text size: <int >= 8>           (required)
  main stroke width: <int >= 1>   (required)
  entry stroke width: <int >= 1>  (required)
  filled entries: yes|no          fill entry polygons at 50% opacity (required)
  hide labels: yes|no             hide interval labels (default: no)
  top: first radius|first side|last side   chart orientation (required)

  scale: <int >= 1>               value at the spoke tips (required)
  intervals: <int >= 1>|none      ring spacing; must divide scale (required)
  interval labels: <words>        one word per ring, scale/intervals + 1 of them
                                  (default: 0, intervals, ..., scale)

  radii: <int >= 3>               number of spokes (required)
  radius <n>: <label>             label of spoke n, for n = 1..radii
                                  (the first definition of n wins)

  entries: <int >= 1>             number of data series (required)
  entry <n> data: <ints>          one non-negative integer per spoke
  entry <n> color: <color>        (the last definition wins)

Errors

  The first problem stops processing and is reported with its line number,
  for example:

    Chart error: Intervals do not evenly fit into scale at ln. 19

EXAMPLE

  python spider_chart.py example chart.txt
  python spider_chart.py render chart.txt chart.svg
"""


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="spider_chart.py",
        description="Render a text spider chart description to SVG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )
    p.add_argument(
        "-v", "--verbose", action="store_true", help="Log layout details to stderr."
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser(
        "render",
        help="Render a chart document to an SVG file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pr.add_argument("chart", help="Path to the chart document.")
    pr.add_argument("output", help="Path to write the SVG output.")
    pr.add_argument(
        "--precision",
        type=int,
        choices=range(0, 11),
        default=3,
        metavar="N",
        help="Decimal places for coordinates (0-10, default 3).",
    )
    pr.add_argument(
        "--char-width",
        type=float,
        default=DEFAULT_CHAR_WIDTH,
        metavar="EMS",
        help=(
            "Assumed average glyph width as a fraction of the font size, used "
            f"to fit labels. Default: {DEFAULT_CHAR_WIDTH}."
        ),
    )

    pv = sub.add_parser(
        "validate",
        help="Validate a chart document and print a brief summary.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pv.add_argument("chart", help="Path to the chart document.")

    pe = sub.add_parser(
        "example",
        help="Write the example chart document.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pe.add_argument("output", help="Where to write the chart document.")

    return p


# -------------------------
# Commands
# -------------------------


def cmd_render(
    chart_path: str,
    output_path: str,
    precision: int = 3,
    char_width: float = DEFAULT_CHAR_WIDTH,
) -> None:
    model = load_chart(chart_path)
    geometry = layout(model, make_text_estimator(char_width))
    write_svg(geometry, output_path, precision=precision)


def cmd_validate(chart_path: str) -> None:
    model = load_chart(chart_path)
    geometry = layout(model)

    print(f"size: {model.width} x {model.height} (margin {model.margin})")
    print(f"radii: {model.num_radii} ({', '.join(model.radii)})")
    print(f"entries: {model.num_entries}")
    intervals = "none" if model.intervals is None else str(model.intervals)
    print(f"scale: {model.scale} intervals: {intervals}")
    print(f"rings: {len(geometry.rings)}")
    print(f"scale factor: {geometry.scale_factor:.4f}")


def cmd_example(output_path: str) -> None:
    # The shipped example must always be a valid chart.
    parse_chart(DEFAULT_DOCUMENT)
    dump_text(DEFAULT_DOCUMENT, output_path)


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)
    if args.verbose:
        setup_logging(logging.DEBUG)

    try:
        if args.cmd == "render":
            cmd_render(args.chart, args.output, args.precision, args.char_width)
        elif args.cmd == "validate":
            cmd_validate(args.chart)
        elif args.cmd == "example":
            cmd_example(args.output)
        else:
            raise AssertionError("unreachable")
    except ChartError as e:
        print(f"Chart error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
