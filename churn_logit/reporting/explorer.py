"""
Exploratory Reporter Module
===========================

Descriptive summaries and charts of each predictor against the outcome.
Nothing computed here is used by the model.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from loguru import logger

from churn_logit.config import FIGURES_DIR, get_config


class ExploratoryReporter:
    """Summarise and chart the prepared churn dataset."""

    def __init__(
        self,
        outcome: str,
        config: Optional[dict] = None,
        figures_dir: Optional[Union[str, Path]] = None
    ):
        """
        Initialize ExploratoryReporter.

        Args:
            outcome: Outcome column the charts compare against
            config: Configuration dictionary
            figures_dir: Output directory, FIGURES_DIR by default
        """
        self.config = config or get_config()
        self.report_config = self.config.get("reporting", {})
        self.outcome = outcome
        self.figures_dir = Path(figures_dir or FIGURES_DIR)
        self.dpi = self.report_config.get("dpi", 150)
        self.saved_figures = []

        sns.set_theme(style=self.report_config.get("style", "whitegrid"))

    def _predictors(self, df: pd.DataFrame, numeric: bool) -> List[str]:
        columns = [col for col in df.columns if col != self.outcome]
        return [col for col in columns if pd.api.types.is_numeric_dtype(df[col]) == numeric]

    def summarize(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Per-column summary statistics.

        Args:
            df: Prepared DataFrame

        Returns:
            One row per column with type, completeness and distribution figures
        """
        rows = []
        for col in df.columns:
            values = df[col]
            row = {
                "column": col,
                "type": "numeric" if pd.api.types.is_numeric_dtype(values) else "category",
                "n_missing": int(values.isna().sum()),
                "complete_rate": float(values.notna().mean()) if len(values) else float("nan"),
                "n_unique": int(values.nunique()),
            }
            if row["type"] == "numeric":
                row.update({
                    "mean": values.mean(),
                    "sd": values.std(),
                    "p0": values.min(),
                    "p25": values.quantile(0.25),
                    "p50": values.median(),
                    "p75": values.quantile(0.75),
                    "p100": values.max(),
                })
            else:
                counts = values.value_counts()
                row["top_counts"] = ", ".join(f"{level}: {count}" for level, count in counts.items())
            rows.append(row)

        return pd.DataFrame(rows).set_index("column")

    def frequency_tables(self, df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
        """Counts and proportions of every level of each categorical column."""
        tables = {}
        for col in self._predictors(df, numeric=False) + [self.outcome]:
            if col not in df.columns:
                continue
            counts = df[col].value_counts(sort=False)
            tables[col] = pd.DataFrame({
                "n": counts,
                "proportion": counts / counts.sum(),
            })
        return tables

    def plot_categorical_vs_outcome(self, df: pd.DataFrame, save: bool = True) -> Dict[str, plt.Figure]:
        """Bar chart of outcome proportions within each level of every categorical predictor."""
        figures = {}
        for col in self._predictors(df, numeric=False):
            proportions = (
                df.groupby(col, observed=True)[self.outcome]
                .value_counts(normalize=True)
                .rename("proportion")
                .reset_index()
            )

            fig, ax = plt.subplots(figsize=(8, 5))
            sns.barplot(data=proportions, x=col, y="proportion", hue=self.outcome, ax=ax)
            ax.set_title(f"{self.outcome} by {col}")
            ax.set_ylim(0, 1)
            plt.tight_layout()

            figures[col] = self._save(fig, f"bar_{col}.png") if save else fig
        return figures

    def plot_numeric_vs_outcome(self, df: pd.DataFrame, save: bool = True) -> Dict[str, plt.Figure]:
        """Boxplot of every numerical predictor split by outcome."""
        figures = {}
        for col in self._predictors(df, numeric=True):
            fig, ax = plt.subplots(figsize=(8, 5))
            sns.boxplot(data=df, x=self.outcome, y=col, ax=ax)
            ax.set_title(f"{col} by {self.outcome}")
            plt.tight_layout()

            figures[col] = self._save(fig, f"boxplot_{col}.png") if save else fig
        return figures

    def plot_pairs(self, df: pd.DataFrame, save: bool = True) -> plt.Figure:
        """Pairwise scatter and density plots of numerical predictors coloured by outcome."""
        numeric = self._predictors(df, numeric=True)
        grid = sns.pairplot(
            df[numeric + [self.outcome]],
            hue=self.outcome,
            vars=numeric,
            diag_kind="kde",
            plot_kws={"alpha": 0.4, "s": 12}
        )
        grid.figure.suptitle("Pairwise predictors by outcome", y=1.02)
        return self._save(grid.figure, "pairs.png") if save else grid.figure

    def generate_report(self, df: pd.DataFrame) -> Dict[str, object]:
        """
        Run every summary and chart.

        Args:
            df: Prepared DataFrame

        Returns:
            Dictionary with the summary table, frequency tables and saved figure paths
        """
        logger.info("Generating exploratory report...")
        summary = self.summarize(df)
        tables = self.frequency_tables(df)

        for col, table in tables.items():
            logger.info(f"Frequency table for {col}:\n{table}")

        self.plot_categorical_vs_outcome(df)
        self.plot_numeric_vs_outcome(df)
        if self.report_config.get("pairplot", True):
            self.plot_pairs(df)
        plt.close("all")

        logger.info(f"Exploratory report complete: {len(self.saved_figures)} figures in {self.figures_dir}")
        return {"summary": summary, "frequency_tables": tables, "figures": list(self.saved_figures)}

    def _save(self, fig: plt.Figure, filename: str) -> plt.Figure:
        self.figures_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.figures_dir / filename
        fig.savefig(filepath, dpi=self.dpi, bbox_inches="tight")
        self.saved_figures.append(filepath)
        logger.info(f"Saved plot to {filepath}")
        return fig
