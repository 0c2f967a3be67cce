from __future__ import annotations

import base64
import io
import json
from collections.abc import Mapping
from typing import Any


def serialize_figure(fig: Any) -> Any:
    """
    Convert an in-process figure into a JSON-compatible chart payload.

    Plotly figures become their JSON spec, matplotlib figures become a PNG
    payload, and mappings are assumed to already be a chart spec.
    """
    if _is_plotly_figure(fig):
        import plotly.io as pio

        return json.loads(pio.to_json(fig))
    if _is_matplotlib_figure(fig):
        return _render_matplotlib(fig)
    if isinstance(fig, Mapping):
        return dict(fig)
    raise TypeError(f"Unsupported figure type: {type(fig).__name__}")


def _is_plotly_figure(obj: Any) -> bool:
    module = type(obj).__module__ or ""
    return module.startswith("plotly") and hasattr(obj, "to_plotly_json")


def _is_matplotlib_figure(obj: Any) -> bool:
    module = type(obj).__module__ or ""
    return module.startswith("matplotlib") and hasattr(obj, "savefig")


def _render_matplotlib(fig: Any) -> dict[str, Any]:
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=150, bbox_inches="tight")
    return {
        "type": "image/png",
        "encoding": "base64",
        "data": base64.b64encode(buffer.getvalue()).decode("ascii"),
    }
