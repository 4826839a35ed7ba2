"""Report module that runs the pediatric ART report end to end.

Loads the indicator, metadata and geometry tables, filters and joins them,
derives the four chart datasets, summarises them, writes the datasets and
renders the charts into the output directory.
"""

import argparse
import json
import os
import sys
import time
from typing import Dict, List, Optional

import pandas as pd

from art_pipeline.aggregates import DerivedDatasets, build_derived_datasets
from art_pipeline.catalog import save_datasets
from art_pipeline.config import ReportConfig, validate_config
from art_pipeline.exceptions import ConfigurationError, LoadError, ReportError
from art_pipeline.ingest.run import Loader
from art_pipeline.logging_config import create_logger, log_exception
from art_pipeline.merge import filter_indicator, join_metadata
from art_pipeline.quality_metrics import ReportSummary, summarize
from art_pipeline.render.charts import ChartRenderer, RenderConfig

# Initialize logger
logger = create_logger(__name__)


class ReportPipeline:
    """Run the ART report pipeline for one configuration.

    Stages run strictly in order and each stage only reads the output of
    the previous ones:

    - load: read the source tables
    - prepare: filter to the target indicator and join metadata
    - aggregate: build the derived datasets and the summary
    - export / render: write datasets, summary and charts
    """

    def __init__(self, config: ReportConfig, loader: Optional[Loader] = None) -> None:
        self.config = config
        self.loader = loader
        # A loader passed in belongs to the caller and is never closed here
        self._owns_loader = loader is None

        self.indicators: Optional[pd.DataFrame] = None
        self.metadata: Optional[pd.DataFrame] = None
        self.geometry: Optional[pd.DataFrame] = None
        self.filtered: Optional[pd.DataFrame] = None
        self.merged: Optional[pd.DataFrame] = None
        self.datasets: Optional[DerivedDatasets] = None
        self.summary: Optional[ReportSummary] = None
        self.outputs: Dict[str, str] = {}

    def load(self) -> None:
        """Load the source tables; geometry is optional.

        :raises LoadError: If the indicator or metadata table cannot be loaded
        """
        if self.loader is None:
            self.loader = Loader()

        geometry_path = None
        if self.config.render:
            geometry_path = self.config.geometry_path
            if not (geometry_path and os.path.isfile(geometry_path)):
                logger.warning(f"Map geometry not found at {geometry_path}")
                geometry_path = None

        self.indicators, self.metadata, self.geometry = self.loader.load_all(
            self.config.indicators_path,
            self.config.metadata_path,
            geometry_path,
            strict_keys=self.config.strict_metadata_keys,
        )

    def prepare(self) -> None:
        self.filtered = filter_indicator(self.indicators, self.config.target_indicator)
        self.merged = join_metadata(self.filtered, self.metadata)

    def aggregate(self) -> None:
        self.datasets = build_derived_datasets(self.filtered, self.merged, self.config.top_n)
        self.summary = summarize(self.filtered, self.merged, self.datasets.latest_year)

    def export(self) -> None:
        """Write the derived datasets and the summary to the output directory."""
        self.outputs.update(
            save_datasets(
                self.datasets.tables(), self.config.output_dir, self.config.export_format
            )
        )

        summary = self.summary.to_dict()
        summary["indicator"] = self.config.target_indicator
        summary["regression"] = self.datasets.fit.to_dict() if self.datasets.fit else None
        summary_path = os.path.join(self.config.output_dir, "summary.json")
        with open(summary_path, "w", encoding="utf-8") as handle:
            json.dump(summary, handle, indent=2, sort_keys=True)
        self.outputs["summary"] = summary_path

    def render(self) -> None:
        renderer = ChartRenderer(RenderConfig(output_dir=self.config.output_dir))
        charts = renderer.render_all(self.datasets, self.geometry)
        self.outputs.update({f"{name}_chart": path for name, path in charts.items()})

    def run(self) -> Dict[str, str]:
        """
        Main method to run the report pipeline.

        :return: Mapping of output name to written file path
        :raises ConfigurationError: If the configuration is invalid
        :raises LoadError: If a source table cannot be loaded
        :raises ReportError: If any later stage fails
        """
        start_time = time.time()
        self.outputs = {}
        logger.info(f"🚀 Starting ART report for '{self.config.target_indicator}'")

        try:
            validate_config(self.config)
            self.load()
            self.prepare()
            self.aggregate()
            self.export()
            if self.config.render:
                self.render()
        except ConfigurationError:
            raise
        except LoadError as e:
            log_exception(logger, e, {"context": "Loading source tables"})
            raise
        except Exception as e:
            log_exception(logger, e, {"context": "Report generation"})
            raise ReportError(f"Report generation failed: {e}") from e
        finally:
            if self._owns_loader and self.loader is not None:
                self.loader.close()
                self.loader = None

        logger.info(
            f"✅ Report completed in {time.time() - start_time:.2f}s: "
            f"{len(self.outputs)} output(s) in {self.config.output_dir}"
        )
        return self.outputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate the pediatric ART access report"
    )
    parser.add_argument("--indicators", help="Path to the indicator CSV", default=None)
    parser.add_argument("--metadata", help="Path to the country metadata CSV", default=None)
    parser.add_argument("--geometry", help="Path to the map geometry CSV", default=None)
    parser.add_argument("--output-dir", help="Directory for charts and datasets", default=None)
    parser.add_argument("--indicator", help="Indicator label in scope", default=None)
    parser.add_argument("--top-n", type=int, help="Countries in the ranking", default=None)
    parser.add_argument(
        "--export-format",
        choices=["csv", "parquet"],
        help="Format of the derived dataset files",
        default=None,
    )
    parser.add_argument(
        "--skip-render", action="store_true", help="Write datasets only, no charts"
    )
    parser.add_argument(
        "--strict-metadata-keys",
        action="store_true",
        default=None,
        help="Fail when metadata has duplicate (alpha_3_code, country) keys",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)
    config = ReportConfig.from_env(
        indicators_path=args.indicators,
        metadata_path=args.metadata,
        geometry_path=args.geometry,
        output_dir=args.output_dir,
        target_indicator=args.indicator,
        top_n=args.top_n,
        export_format=args.export_format,
        strict_metadata_keys=args.strict_metadata_keys,
        render=False if args.skip_render else None,
    )

    try:
        ReportPipeline(config).run()
    except (ConfigurationError, LoadError, ReportError) as e:
        logger.error(f"Report run failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
