"""
Chart rendering backend.

A small chart object with the same shape as a Chart.js chart: it is built
from ``{"type", "data": {"labels", "datasets"}, "options"}``, exposes the
mutable ``data`` dict, and ``update()`` marks it for redrawing.  The figure is
drawn when an image is next requested, so a burst of updates costs one
draw, and the drawing can happen off the event loop.  Drawing goes through
matplotlib's object-oriented ``Figure`` API on the Agg backend, so no GUI or
pyplot global state is involved and each chart owns its own figure.

The drawing surface is a ``Canvas``: a named element with a pixel size.  A
hidden canvas has no layout size; a chart measured while its canvas is
hidden stays at zero size until ``resize()`` is called.
"""

from __future__ import annotations

import base64
import io
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, NamedTuple, Optional

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.colors import to_rgba
from matplotlib.figure import Figure

logger = logging.getLogger(__name__)

DPI = 100
EMPTY_DATA_URL = "data:,"

_FORMATS = {"image/png": "png", "image/jpeg": "jpeg", "image/svg+xml": "svg"}


@dataclass
class Canvas:
    """A drawing surface identified by its element id."""

    element_id: str
    width: int = 800
    height: int = 400
    hidden: bool = False

    @property
    def layout_size(self) -> tuple[int, int]:
        """Current on-screen size; (0, 0) while hidden."""
        if self.hidden:
            return (0, 0)
        return (self.width, self.height)


class TooltipContext(NamedTuple):
    """Argument handed to tooltip ``label`` callbacks."""

    label: str
    dataset_label: str
    parsed: float
    dataset_index: int
    index: int


def _css_color(value: str) -> tuple[float, float, float, float]:
    """Accept "rgba(r,g,b,a)" strings as well as anything matplotlib knows."""
    text = value.strip()
    if text.startswith("rgb"):
        inner = text[text.index("(") + 1:text.rindex(")")]
        parts = [p.strip() for p in inner.split(",")]
        r, g, b = (int(float(p)) / 255 for p in parts[:3])
        a = float(parts[3]) if len(parts) > 3 else 1.0
        return (r, g, b, a)
    return to_rgba(text)


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else [value]


class MatplotlibChart:
    """Chart.js-shaped chart drawn with matplotlib.

    Supported types: ``bar`` and ``pie``.
    """

    def __init__(self, canvas: Canvas, config: dict[str, Any]) -> None:
        chart_type = config.get("type")
        if chart_type not in ("bar", "pie"):
            raise ValueError(f"Unsupported chart type: {chart_type!r}")
        self.canvas = canvas
        self.type: str = chart_type
        self.data: dict[str, Any] = config.get("data", {})
        self.options: dict[str, Any] = config.get("options", {})
        self.width, self.height = canvas.layout_size
        self.render_count = 0
        self._figure: Optional[Figure] = None
        self._image: Optional[bytes] = None
        self._image_format: Optional[str] = None
        self._destroyed = False
        self._lock = threading.Lock()

    # ── Chart.js-compatible surface ────────────────────────────────────────

    def update(self) -> None:
        """Take up the current ``data``/``options``; drawn on the next export."""
        if self._destroyed:
            return
        with self._lock:
            self._figure = None
            self._image = None
            self._image_format = None

    def resize(self) -> None:
        """Re-measure the canvas; the next export draws at the new size."""
        self.width, self.height = self.canvas.layout_size
        self.update()

    def destroy(self) -> None:
        with self._lock:
            self._destroyed = True
            self._image = None
            self._figure = None

    def tooltip_label(self, dataset_index: int, index: int) -> str:
        """Text the tooltip shows for one data point."""
        dataset = self.data["datasets"][dataset_index]
        ctx = TooltipContext(
            label=self.data["labels"][index],
            dataset_label=dataset.get("label", ""),
            parsed=dataset["data"][index],
            dataset_index=dataset_index,
            index=index,
        )
        callback = self._tooltip_callback()
        if callback is None:
            return f"{ctx.dataset_label or ctx.label}: {ctx.parsed}"
        return callback(ctx)

    def to_image(self, mime: str = "image/png") -> Optional[bytes]:
        """Return the drawing encoded as *mime*, or None if there is nothing to draw.

        Draws first if the chart changed since the last export.
        """
        if self._destroyed or not self.width or not self.height:
            return None
        fmt = _FORMATS.get(mime, "png")
        with self._lock:
            if self._figure is None:
                self._figure = self._draw()
                self.render_count += 1
            if self._image is None or self._image_format != fmt:
                buf = io.BytesIO()
                FigureCanvasAgg(self._figure).print_figure(buf, format=fmt, dpi=DPI)
                self._image = buf.getvalue()
                self._image_format = fmt
            return self._image

    def to_data_url(self, mime: str = "image/png") -> str:
        """Encode the drawing as a data URL; an empty surface yields "data:,"."""
        image = self.to_image(mime)
        if image is None:
            return EMPTY_DATA_URL
        if mime not in _FORMATS:
            mime = "image/png"
        return f"data:{mime};base64,{base64.b64encode(image).decode('ascii')}"

    # ── Drawing ─────────────────────────────────────────────────────────────

    def _tooltip_callback(self) -> Optional[Callable[[TooltipContext], str]]:
        plugins = self.options.get("plugins", {})
        return plugins.get("tooltip", {}).get("callbacks", {}).get("label")

    def _draw(self) -> Figure:
        fig = Figure(figsize=(self.width / DPI, self.height / DPI), dpi=DPI)
        ax = fig.add_subplot()
        if self.type == "bar":
            self._draw_bar(ax)
        else:
            self._draw_pie(ax)
        fig.tight_layout()
        return fig

    def _draw_bar(self, ax) -> None:
        labels = list(self.data.get("labels", []))
        datasets = self.data.get("datasets", [])
        positions = range(len(labels))
        width = 0.8 / max(len(datasets), 1)
        peak = 0.0
        for i, ds in enumerate(datasets):
            values = list(ds.get("data", []))
            peak = max([peak, *values])
            offset = (i - (len(datasets) - 1) / 2) * width
            ax.bar(
                [p + offset for p in positions], values, width,
                label=ds.get("label"),
                color=_css_color(ds.get("backgroundColor", "gray")),
            )
        ax.set_xticks(list(positions))
        ax.set_xticklabels([label[:3] for label in labels])
        y_opts = self.options.get("scales", {}).get("y", {})
        bottom = 0 if y_opts.get("beginAtZero") else None
        top = max(peak, y_opts.get("suggestedMax", 0)) or None
        ax.set_ylim(bottom=bottom, top=top)
        ax.legend(loc="upper right")

    def _draw_pie(self, ax) -> None:
        labels = list(self.data.get("labels", []))
        dataset = self.data["datasets"][0]
        values = list(dataset.get("data", []))
        colors = [_css_color(c) for c in _as_list(dataset.get("backgroundColor", []))]
        edges = [_css_color(c) for c in _as_list(dataset.get("borderColor", []))]
        ax.set_aspect("equal")
        ax.axis("off")
        if sum(values) <= 0:
            # Nothing to draw, same as an all-zero Chart.js pie.
            return
        wedges, _texts = ax.pie(
            values,
            colors=colors or None,
            wedgeprops={"linewidth": dataset.get("borderWidth", 1)},
            labels=[self.tooltip_label(0, i) for i in range(len(values))],
            textprops={"fontsize": 8},
        )
        for wedge, edge in zip(wedges, edges):
            wedge.set_edgecolor(edge)
        position = self.options.get("plugins", {}).get("legend", {}).get("position", "top")
        if position == "bottom":
            ax.legend(wedges, labels, loc="upper center", bbox_to_anchor=(0.5, 0.0), ncol=len(labels))
        else:
            ax.legend(wedges, labels, loc="lower center", bbox_to_anchor=(0.5, 1.0), ncol=len(labels))
