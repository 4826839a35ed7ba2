"""Render package for drawing the report charts."""

from art_pipeline.render.charts import ChartRenderer, RenderConfig, attach_map_values

__all__ = ["ChartRenderer", "RenderConfig", "attach_map_values"]
