#!/usr/bin/env python3
"""
Script 02: Differential expression testing with pydeseq2.

This script:
1. Loads the filtered counts and aligned classes from step 01
2. Fits one DESeq2 model over all classes
3. Tests every configured contrast (pairwise and one-vs-rest)
4. Saves the result tables and the normalized counts

Usage:
    python scripts/02_run_contrasts.py [--data-dir DATA_DIR] [--n-cpus N]
"""

import os
import sys
import argparse

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rnaseq_gsea.data_loading import read_count_matrix, read_class_table, align_samples
from rnaseq_gsea.deseq2_utils import build_contrasts, run_contrasts, PyDESeq2Backend
from rnaseq_gsea.exporters import write_results_table, write_matrix
from rnaseq_gsea.utils import contrast_file
from rnaseq_gsea.config import (
    RESULTS_DIR, CLASS_ORDER, N_CPUS, FDR_THRESHOLD, RESULTS_SUFFIX,
    FILTERED_COUNTS_FILENAME, ALIGNED_CLASSES_FILENAME,
    NORMALIZED_COUNTS_FILENAME,
)


def run_differential_expression(data_dir, n_cpus=N_CPUS, alpha=FDR_THRESHOLD):
    """
    Test all contrasts on the filtered counts.

    Args:
        data_dir (str): Directory holding the step 01 outputs; results
                        are written there as well
        n_cpus (int): Worker processes for pydeseq2
        alpha (float): Significance level passed to pydeseq2
    """
    counts_path = os.path.join(data_dir, FILTERED_COUNTS_FILENAME)
    classes_path = os.path.join(data_dir, ALIGNED_CLASSES_FILENAME)

    if not os.path.exists(counts_path):
        raise FileNotFoundError(
            f"Filtered counts not found: {counts_path}\n"
            f"Run 01_prepare_counts.py first."
        )

    print("\n[1/3] Loading filtered counts...")
    counts = read_count_matrix(counts_path)
    classes = align_samples(counts, read_class_table(classes_path, class_col='class'))
    print(f"  Counts shape (genes x samples): {counts.shape}")

    print("\n[2/3] Testing contrasts...")
    contrasts = build_contrasts(groups=CLASS_ORDER)
    backend = PyDESeq2Backend(n_cpus=n_cpus, alpha=alpha)
    results, backend = run_contrasts(counts, classes, contrasts, backend=backend)

    print("\n[3/3] Saving results...")
    for name, res in results.items():
        path = write_results_table(res, contrast_file(data_dir, name, RESULTS_SUFFIX))
        print(f"  {name}: {path}")

    normalized_path = write_matrix(
        backend.normalized_counts(),
        os.path.join(data_dir, NORMALIZED_COUNTS_FILENAME),
    )
    print(f"  Normalized counts: {normalized_path}")

    return results


def main():
    parser = argparse.ArgumentParser(description='Run differential expression contrasts')
    parser.add_argument(
        '--data-dir',
        type=str,
        default=RESULTS_DIR,
        help='Directory containing the step 01 outputs'
    )
    parser.add_argument(
        '--n-cpus',
        type=int,
        default=N_CPUS,
        help='Number of CPUs used by pydeseq2'
    )
    parser.add_argument(
        '--alpha',
        type=float,
        default=FDR_THRESHOLD,
        help='Significance level'
    )
    args = parser.parse_args()

    print("=" * 60)
    print("Differential Expression")
    print("=" * 60)

    run_differential_expression(args.data_dir, n_cpus=args.n_cpus, alpha=args.alpha)

    print("\nDifferential expression complete!")


if __name__ == '__main__':
    main()
