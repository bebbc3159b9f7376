#!/usr/bin/env python3
"""
Script 03: Write enrichment tool inputs.

This script:
1. Loads the contrast results from step 02
2. Writes per contrast the significant gene list and the GSEA rank file
3. Annotates the normalized counts with gene descriptions
4. Writes the GSEA expression table and the .cls class file

Usage:
    python scripts/03_write_gsea_inputs.py [--data-dir DATA_DIR] [--annotation biomart]
"""

import os
import sys
import argparse

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rnaseq_gsea.data_loading import read_matrix, read_results_table, read_class_table
from rnaseq_gsea.pipeline import write_contrast_outputs, write_expression_outputs
from rnaseq_gsea.utils import contrast_file
from rnaseq_gsea.config import (
    RESULTS_DIR, CLASS_ORDER, FDR_THRESHOLD, RESULTS_SUFFIX, SAMPLE_ID_LENGTH,
    ANNOTATION_SOURCE, NORMALIZED_COUNTS_FILENAME, ALIGNED_CLASSES_FILENAME,
    contrast_names,
)


def load_contrast_results(data_dir, names):
    """Load the result table of each contrast."""
    results = {}

    for name in names:
        path = contrast_file(data_dir, name, RESULTS_SUFFIX)
        if not os.path.exists(path):
            raise FileNotFoundError(
                f"Contrast results not found: {path}\n"
                f"Run 02_run_contrasts.py first."
            )
        results[name] = read_results_table(path)

    return results


def main():
    parser = argparse.ArgumentParser(description='Write GSEA and g:Profiler input files')
    parser.add_argument(
        '--data-dir',
        type=str,
        default=RESULTS_DIR,
        help='Directory containing the step 02 outputs; files are written there'
    )
    parser.add_argument(
        '--annotation',
        type=str,
        default=ANNOTATION_SOURCE,
        help="Description source: 'biomart', 'mygene', 'none' or a table path"
    )
    parser.add_argument(
        '--fdr',
        type=float,
        default=FDR_THRESHOLD,
        help='Adjusted p-value threshold for the significant gene lists'
    )
    parser.add_argument(
        '--sample-id-length',
        type=int,
        default=SAMPLE_ID_LENGTH,
        help='Number of characters kept from sample ids'
    )
    args = parser.parse_args()

    print("=" * 60)
    print("GSEA Input Files")
    print("=" * 60)

    print("\n[1/3] Loading contrast results...")
    results = load_contrast_results(args.data_dir, contrast_names())
    print(f"  Loaded {len(results)} contrasts")

    print("\n[2/3] Writing gene lists and rank files...")
    write_contrast_outputs(results, args.data_dir, fdr=args.fdr)

    print("\n[3/3] Writing expression and class files...")
    normalized = read_matrix(os.path.join(args.data_dir, NORMALIZED_COUNTS_FILENAME))
    classes = read_class_table(
        os.path.join(args.data_dir, ALIGNED_CLASSES_FILENAME), class_col='class')
    classes = classes.reindex(normalized.columns)

    _, expression_path, cls_path = write_expression_outputs(
        normalized, classes, args.data_dir,
        annotation=args.annotation,
        class_order=CLASS_ORDER,
        sample_id_length=args.sample_id_length,
    )
    print(f"  Expression table: {expression_path}")
    print(f"  Class file: {cls_path}")

    print("\nGSEA input files complete!")


if __name__ == '__main__':
    main()
