#!/usr/bin/env python3
"""
Script 04: Quality control plots.

This script:
1. Draws a clustered heatmap of one contrast's significant genes
2. Draws a PCA of all samples colored by class

Usage:
    python scripts/04_plot_heatmap.py [--data-dir DATA_DIR] [--contrast NAME]
"""

import os
import sys
import argparse

import pandas as pd

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rnaseq_gsea.data_loading import read_matrix, read_results_table, read_class_table
from rnaseq_gsea.exporters import significant_symbols
from rnaseq_gsea.visualization import plot_expression_heatmap, plot_sample_pca
from rnaseq_gsea.utils import contrast_file
from rnaseq_gsea.config import (
    RESULTS_DIR, FDR_THRESHOLD, RESULTS_SUFFIX, HEATMAP_CONTRAST,
    HEATMAP_FILENAME, PCA_FILENAME, EXPRESSION_FILENAME, CLASS_COLORS,
    NORMALIZED_COUNTS_FILENAME, ALIGNED_CLASSES_FILENAME, PLOT_DPI,
    get_contrast_by_name,
)


def main():
    parser = argparse.ArgumentParser(description='Plot QC heatmap and PCA')
    parser.add_argument(
        '--data-dir',
        type=str,
        default=RESULTS_DIR,
        help='Directory containing the step 02/03 outputs'
    )
    parser.add_argument(
        '--contrast',
        type=str,
        default=HEATMAP_CONTRAST,
        help='Contrast whose significant genes are plotted'
    )
    parser.add_argument(
        '--fdr',
        type=float,
        default=FDR_THRESHOLD,
        help='Adjusted p-value threshold'
    )
    parser.add_argument(
        '--skip-pca',
        action='store_true',
        help='Only draw the heatmap'
    )
    args = parser.parse_args()

    group, reference = get_contrast_by_name(args.contrast)

    print("=" * 60)
    print(f"QC Plots: {group} vs {reference}")
    print("=" * 60)

    classes = read_class_table(
        os.path.join(args.data_dir, ALIGNED_CLASSES_FILENAME), class_col='class')

    print("\n[1/2] Heatmap of significant genes...")
    res = read_results_table(contrast_file(args.data_dir, args.contrast, RESULTS_SUFFIX))
    genes = significant_symbols(res, fdr=args.fdr)
    print(f"  {len(genes)} significant genes")

    expression = pd.read_csv(os.path.join(args.data_dir, EXPRESSION_FILENAME),
                             sep='\t', header=0, keep_default_na=False)
    heatmap_path = plot_expression_heatmap(
        expression, list(classes), genes,
        os.path.join(args.data_dir, HEATMAP_FILENAME),
        class_colors=CLASS_COLORS, dpi=PLOT_DPI,
    )
    if heatmap_path:
        print(f"  Heatmap saved to: {heatmap_path}")

    if not args.skip_pca:
        print("\n[2/2] Sample PCA...")
        normalized = read_matrix(os.path.join(args.data_dir, NORMALIZED_COUNTS_FILENAME))
        pca_path = plot_sample_pca(
            normalized, list(classes.reindex(normalized.columns)),
            os.path.join(args.data_dir, PCA_FILENAME),
            class_colors=CLASS_COLORS, dpi=PLOT_DPI,
        )
        print(f"  PCA saved to: {pca_path}")

    print("\nQC plots complete!")


if __name__ == '__main__':
    main()
