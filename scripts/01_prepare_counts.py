#!/usr/bin/env python3
"""
Script 01: Load and filter RNA-seq counts.

This script:
1. Loads the raw count matrix and the class definitions
2. Checks that both cover the same samples
3. Filters low-expression genes (CPM rule) and unannotated genes
4. Saves the filtered counts and aligned classes for the next step

Usage:
    python scripts/01_prepare_counts.py [--data-dir DATA_DIR] [--output-dir OUTPUT_DIR]
"""

import os
import sys
import argparse

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rnaseq_gsea.data_loading import load_inputs
from rnaseq_gsea.preprocessing import filter_counts
from rnaseq_gsea.exporters import write_matrix, write_classes
from rnaseq_gsea.utils import ensure_dir
from rnaseq_gsea.config import (
    DATA_DIR, RESULTS_DIR, COUNTS_FILENAME, CLASSES_FILENAME,
    MIN_SAMPLES, CPM_THRESHOLD, FILTERED_COUNTS_FILENAME,
    ALIGNED_CLASSES_FILENAME,
)


def prepare_counts(counts_path, classes_path, output_dir, class_col=None,
                   min_samples=MIN_SAMPLES, threshold=CPM_THRESHOLD):
    """
    Load, validate and filter the count matrix.

    Args:
        counts_path (str): Raw count matrix path
        classes_path (str): Class definition table path
        output_dir (str): Directory for the filtered counts
        class_col (str): Class label column
        min_samples (int): Minimum samples with CPM above threshold
        threshold (float): CPM threshold
    """
    print("\n[1/2] Loading inputs...")
    counts, classes = load_inputs(counts_path, classes_path, class_col=class_col)

    print("\n[2/2] Filtering genes...")
    filtered = filter_counts(counts, min_samples=min_samples, threshold=threshold)

    if filtered.shape[0] == 0:
        raise ValueError("No genes remaining after filtering!")

    ensure_dir(output_dir)
    counts_out = write_matrix(filtered, os.path.join(output_dir, FILTERED_COUNTS_FILENAME))
    classes_out = write_classes(classes, os.path.join(output_dir, ALIGNED_CLASSES_FILENAME))

    print(f"\n  Filtered counts saved to: {counts_out}")
    print(f"  Aligned classes saved to: {classes_out}")

    return filtered, classes


def main():
    parser = argparse.ArgumentParser(description='Load and filter RNA-seq counts')
    parser.add_argument(
        '--data-dir',
        type=str,
        default=DATA_DIR,
        help='Directory containing the input tables'
    )
    parser.add_argument(
        '--counts',
        type=str,
        default=COUNTS_FILENAME,
        help='Raw count matrix file name (inside --data-dir)'
    )
    parser.add_argument(
        '--classes',
        type=str,
        default=CLASSES_FILENAME,
        help='Class definition file name (inside --data-dir)'
    )
    parser.add_argument(
        '--class-col',
        type=str,
        default=None,
        help='Column of the class table holding the class label'
    )
    parser.add_argument(
        '--min-samples',
        type=int,
        default=MIN_SAMPLES,
        help='Minimum number of samples with CPM above the threshold'
    )
    parser.add_argument(
        '--cpm-threshold',
        type=float,
        default=CPM_THRESHOLD,
        help='CPM threshold'
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        default=RESULTS_DIR,
        help='Output directory'
    )
    args = parser.parse_args()

    prepare_counts(
        counts_path=os.path.join(args.data_dir, args.counts),
        classes_path=os.path.join(args.data_dir, args.classes),
        output_dir=args.output_dir,
        class_col=args.class_col,
        min_samples=args.min_samples,
        threshold=args.cpm_threshold,
    )

    print("\nPreparation complete!")


if __name__ == '__main__':
    main()
