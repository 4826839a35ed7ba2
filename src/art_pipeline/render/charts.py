"""Chart rendering for the ART report.

Each chart is drawn on its own matplotlib ``Figure`` (no pyplot state) and
written to the configured output directory. All styling comes from the
``RenderConfig`` passed to ``ChartRenderer``.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import matplotlib
import numpy as np
import pandas as pd
from matplotlib.cm import ScalarMappable
from matplotlib.collections import PolyCollection
from matplotlib.colors import Normalize, to_rgba
from matplotlib.figure import Figure

from art_pipeline.aggregates import DerivedDatasets, OlsFit
from art_pipeline.country_codes import CountryCodeResolver, get_resolver
from art_pipeline.exceptions import RenderError
from art_pipeline.logging_config import create_logger
from art_pipeline.schemas import COUNTRY_KEY, GDP_COLUMN

logger = create_logger(__name__)


@dataclass
class RenderConfig:
    """Theme and output settings for the report charts."""

    output_dir: str
    image_format: str = "png"
    dpi: int = 150
    figsize: Tuple[float, float] = (10.0, 6.0)
    map_figsize: Tuple[float, float] = (12.0, 6.5)
    colormap: str = "YlOrRd"
    fallback_color: str = "#d9d9d9"
    edge_color: str = "white"
    bar_color: str = "#c0392b"
    point_color: str = "#2c3e50"
    line_color: str = "#c0392b"
    band_alpha: float = 0.2
    confidence_level: float = 0.95
    value_label: str = "Children (0-14) receiving ART"
    gdp_label: str = "GDP per capita (constant 2015 US$)"


def attach_map_values(
    geometry: pd.DataFrame,
    latest: pd.DataFrame,
    resolver: Optional[CountryCodeResolver] = None,
) -> pd.DataFrame:
    """Resolve geometry region names and attach one value per country.

    Where the latest-year selection has several rows for a code, the first
    one is used. Unresolved regions and regions without data keep a missing
    ``obs_value``; no geometry row is dropped.
    """
    resolver = resolver or get_resolver()
    coded = resolver.resolve_frame(geometry, name_column="region", code_column=COUNTRY_KEY)
    values = (
        latest.dropna(subset=[COUNTRY_KEY])
        .drop_duplicates(subset=[COUNTRY_KEY], keep="first")[[COUNTRY_KEY, "obs_value"]]
    )
    return coded.merge(values, how="left", on=COUNTRY_KEY, sort=False)


class ChartRenderer:
    """Draw the four report charts into ``config.output_dir``."""

    def __init__(self, config: RenderConfig):
        self.config = config

    def _new_figure(self, figsize=None):
        figure = Figure(figsize=figsize or self.config.figsize, dpi=self.config.dpi)
        return figure, figure.subplots()

    def _save(self, figure: Figure, name: str) -> str:
        path = os.path.join(self.config.output_dir, f"{name}.{self.config.image_format}")
        try:
            os.makedirs(self.config.output_dir, exist_ok=True)
            figure.savefig(path, dpi=self.config.dpi, bbox_inches="tight")
        except (OSError, ValueError) as e:
            raise RenderError(f"Unable to write chart {path}: {e}") from e
        logger.info(f"🖼️ Chart written to {path}")
        return path

    @staticmethod
    def _no_data(ax, message: str = "No data available") -> None:
        ax.text(0.5, 0.5, message, ha="center", va="center", transform=ax.transAxes)
        ax.set_axis_off()

    def render_map(self, map_frame: pd.DataFrame, title: str = "") -> str:
        """Draw a choropleth from geometry rows carrying ``obs_value``."""
        figure, ax = self._new_figure(self.config.map_figsize)
        values = map_frame["obs_value"].dropna()
        cmap = matplotlib.colormaps[self.config.colormap]
        if values.empty:
            norm = Normalize(vmin=0.0, vmax=1.0)
        else:
            norm = Normalize(vmin=float(values.min()), vmax=float(values.max()))

        fallback = to_rgba(self.config.fallback_color)
        polygons, colors = [], []
        ordered = map_frame.dropna(subset=["long", "lat", "group"]).sort_values(
            ["group", "order"], kind="mergesort"
        )
        for _, part in ordered.groupby("group", sort=True):
            if len(part) < 3:
                continue
            value = part["obs_value"].iloc[0]
            polygons.append(part[["long", "lat"]].to_numpy(dtype=float))
            colors.append(fallback if pd.isna(value) else cmap(norm(value)))

        if polygons:
            ax.add_collection(
                PolyCollection(
                    polygons,
                    facecolors=colors,
                    edgecolors=self.config.edge_color,
                    linewidths=0.2,
                )
            )
            ax.autoscale_view()
            ax.set_axis_off()
            mappable = ScalarMappable(norm=norm, cmap=cmap)
            mappable.set_array([])
            colorbar = figure.colorbar(mappable, ax=ax, shrink=0.6)
            colorbar.set_label(self.config.value_label)
        else:
            self._no_data(ax)

        ax.set_title(title or f"{self.config.value_label}, latest year")
        return self._save(figure, "map")

    def render_top_countries(self, top: pd.DataFrame, title: str = "") -> str:
        figure, ax = self._new_figure()
        if top.empty:
            self._no_data(ax)
        else:
            labels = top["country"].where(top["country"].notna(), top[COUNTRY_KEY])
            # Largest value on top
            ax.barh(labels.astype(str)[::-1], top["obs_value"][::-1], color=self.config.bar_color)
            ax.set_xlabel(self.config.value_label)
        ax.set_title(title or f"Top {len(top)} countries, latest year")
        return self._save(figure, "top_countries")

    def render_scatter(
        self, pairs: pd.DataFrame, fit: Optional[OlsFit] = None, title: str = ""
    ) -> str:
        figure, ax = self._new_figure()
        if pairs.empty:
            self._no_data(ax)
        else:
            x = pairs[GDP_COLUMN].to_numpy(dtype=float)
            ax.scatter(x, pairs["obs_value"], color=self.config.point_color, alpha=0.7)
            if fit is not None:
                grid = np.linspace(x.min(), x.max(), 100)
                lower, upper = fit.confidence_band(grid, self.config.confidence_level)
                ax.plot(grid, fit.predict(grid), color=self.config.line_color)
                ax.fill_between(
                    grid, lower, upper, color=self.config.line_color, alpha=self.config.band_alpha
                )
            ax.set_xlabel(self.config.gdp_label)
            ax.set_ylabel(self.config.value_label)
        subtitle = f" (R² = {fit.r_squared:.2f})" if fit is not None else ""
        ax.set_title((title or "ART coverage against GDP per capita") + subtitle)
        return self._save(figure, "scatter")

    def render_yearly_totals(self, totals: pd.DataFrame, title: str = "") -> str:
        figure, ax = self._new_figure()
        if totals.empty:
            self._no_data(ax)
        else:
            ax.plot(
                totals["time_period"], totals["total"], marker="o", color=self.config.line_color
            )
            ax.set_xlabel("Year")
            ax.set_ylabel(self.config.value_label)
        ax.set_title(title or "Total across reporting countries by year")
        return self._save(figure, "yearly_totals")

    def render_all(
        self, datasets: DerivedDatasets, geometry: Optional[pd.DataFrame] = None
    ) -> Dict[str, str]:
        """Draw every chart; the map is skipped when no geometry is given."""
        paths = {}
        if geometry is not None:
            paths["map"] = self.render_map(attach_map_values(geometry, datasets.latest_year))
        else:
            logger.warning("No map geometry loaded; skipping the choropleth")
        paths["top_countries"] = self.render_top_countries(datasets.top_countries)
        paths["scatter"] = self.render_scatter(datasets.scatter_pairs, datasets.fit)
        paths["yearly_totals"] = self.render_yearly_totals(datasets.yearly_totals)
        return paths
