"""
Preprocessing utilities for RNA-seq count data.

This module provides functions for:
- Counts-per-million (CPM) normalization
- Low-expression gene filtering
- Removal of genes without a curated symbol
- Splitting composite 'SYMBOL|ID' gene identifiers
"""

import re

import numpy as np
import pandas as pd

from .config import CPM_THRESHOLD, MIN_SAMPLES, UNANNOTATED_PATTERN

_UNANNOTATED = re.compile(UNANNOTATED_PATTERN)


def compute_cpm(counts):
    """
    Compute counts per million for each sample.

    Each count is divided by the total count of its sample (column) and
    scaled to one million.

    Args:
        counts (pd.DataFrame): Raw count matrix (genes x samples)

    Returns:
        pd.DataFrame: CPM matrix with the same shape and labels
    """
    lib_sizes = counts.sum(axis=0).astype(float)
    # Empty libraries would divide by zero; their CPM is zero everywhere
    lib_sizes = lib_sizes.replace(0, np.nan)
    cpm = counts.div(lib_sizes, axis='columns') * 1e6
    return cpm.fillna(0.0)


def filter_low_expression(counts, min_samples=MIN_SAMPLES, threshold=CPM_THRESHOLD):
    """
    Filter genes with low expression across samples.

    Keeps genes whose CPM is greater than `threshold` in at least
    `min_samples` samples.

    Args:
        counts (pd.DataFrame): Raw count matrix (genes x samples)
        min_samples (int): Minimum number of samples passing the threshold
        threshold (float): CPM threshold (strictly greater than)

    Returns:
        pd.DataFrame: Filtered count matrix
    """
    cpm = compute_cpm(counts)
    keep = (cpm > threshold).sum(axis='columns') >= min_samples
    return counts[keep]


def is_unannotated(gene_id):
    """True for ids without a curated gene symbol ('?' or 'LOC...')."""
    return _UNANNOTATED.search(str(gene_id)) is not None


def filter_unannotated(df):
    """
    Remove rows whose gene id lacks a curated gene symbol.

    Args:
        df (pd.DataFrame): Any table indexed by gene id

    Returns:
        pd.DataFrame: Table without unannotated rows
    """
    mask = np.array([not is_unannotated(gene_id) for gene_id in df.index], dtype=bool)
    return df.loc[mask]


def filter_counts(counts, min_samples=MIN_SAMPLES, threshold=CPM_THRESHOLD):
    """
    Execute the gene filtering pipeline.

    Pipeline order:
    1. Filter low-expression genes (CPM rule)
    2. Filter genes without a curated symbol

    Args:
        counts (pd.DataFrame): Raw count matrix (genes x samples)
        min_samples (int): Minimum number of samples passing the CPM threshold
        threshold (float): CPM threshold

    Returns:
        pd.DataFrame: Filtered count matrix
    """
    print(f"  Counts shape before filtering: {counts.shape}")

    counts = filter_low_expression(counts, min_samples=min_samples,
                                   threshold=threshold)
    print(f"  Counts shape after filter CPM > {threshold} in "
          f">= {min_samples} samples: {counts.shape}")

    counts = filter_unannotated(counts)
    print(f"  Counts shape after filter unannotated genes: {counts.shape}")

    return counts


def gene_symbol(gene_id):
    """Symbol part of a composite 'SYMBOL|ID' gene identifier."""
    return str(gene_id).split('|')[0]


def split_gene_ids(gene_ids):
    """
    Split composite gene identifiers into symbol and accession.

    Args:
        gene_ids (iterable): Identifiers such as 'TP53|7157'

    Returns:
        pd.DataFrame: Columns 'symbol' and 'accession' (empty when the id
                      has no '|'), indexed by the original identifier
    """
    gene_ids = [str(g) for g in gene_ids]
    parts = [g.split('|', 1) for g in gene_ids]
    return pd.DataFrame({
        'symbol': [p[0] for p in parts],
        'accession': [p[1] if len(p) > 1 else '' for p in parts],
    }, index=gene_ids)
