"""
Overpass query templates.

A template is Overpass QL text containing one or more `{{bbox}}` placeholders. Packaged
templates live in `watermap/ingestion/query_templates/`; a layer may point at an external file
via `query_path` instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources

from watermap.config.settings import LayerSettings
from watermap.core.env import resolve_project_path
from watermap.core.geo import BoundingBox

BBOX_PLACEHOLDER = "{{bbox}}"


@dataclass(frozen=True)
class QueryTemplate:
    layer: str
    name: str
    text: str

    def render(self, bounds: BoundingBox) -> str:
        return self.text.replace(BBOX_PLACEHOLDER, bounds.as_overpass())


def load_packaged_query(layer: str, filename: str) -> QueryTemplate:
    text = resources.files("watermap.ingestion.query_templates").joinpath(filename).read_text(encoding="utf-8")
    return QueryTemplate(layer=layer, name=filename, text=text)


def load_layer_query(name: str, layer: LayerSettings) -> QueryTemplate:
    """Return the template for layer `name`, preferring an explicit `query_path`."""
    if layer.query_path:
        path = resolve_project_path(layer.query_path)
        return QueryTemplate(layer=name, name=path.name, text=path.read_text(encoding="utf-8"))
    return load_packaged_query(name, layer.query)
