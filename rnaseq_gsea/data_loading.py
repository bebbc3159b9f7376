"""
Data loading utilities for TCGA-style RNA-seq count tables.

This module reads the raw count matrix and the class definition table
from tab-delimited text files, and checks that both describe the same
set of samples before any analysis is run.
"""

import warnings

import pandas as pd

from .config import CLASS_COLUMN
from .exceptions import DataMismatchError

warnings.filterwarnings('ignore')


def read_count_matrix(path):
    """
    Read a raw RNA-seq count matrix.

    Args:
        path (str): Tab-delimited file with a header row of sample ids and
                    gene ids ('SYMBOL|ENTREZID') as row names

    Returns:
        pd.DataFrame: Integer count matrix (genes x samples)

    Raises:
        DataMismatchError: If a count is missing or not a number
    """
    df = pd.read_csv(path, sep='\t', header=0, index_col=0, quotechar='"')
    df.index = df.index.astype(str)
    df.columns = [str(c) for c in df.columns]
    df.index.name = None

    # Counts must be integers for the negative binomial model
    values = df.apply(pd.to_numeric, errors='coerce')
    bad = values.isna()
    if bad.to_numpy().any():
        flagged = bad.stack()
        cells = [f'{gene}/{sample}' for gene, sample in flagged[flagged].index[:5]]
        raise DataMismatchError(
            f"Count matrix {path} has {int(bad.to_numpy().sum())} missing or "
            f"non-numeric values, e.g. {cells}"
        )
    df = values.round().astype(int)

    return df


def read_class_table(path, class_col=None):
    """
    Read the sample class definitions.

    Args:
        path (str): Tab-delimited file with a header row; the first column
                    holds sample ids
        class_col (str): Column with the class label. Defaults to
                         config.CLASS_COLUMN, or to the only data column
                         when the table has just one.

    Returns:
        pd.Series: Class label per sample id
    """
    df = pd.read_csv(path, sep='\t', header=0, index_col=0, quotechar='"',
                     dtype=str)
    df.index = df.index.astype(str)

    if class_col is None:
        class_col = CLASS_COLUMN
        if class_col not in df.columns and len(df.columns) == 1:
            class_col = df.columns[0]

    if class_col not in df.columns:
        raise DataMismatchError(
            f"Class column '{class_col}' not found in {path} "
            f"(columns: {list(df.columns)})"
        )

    classes = df[class_col].str.strip()
    classes.name = 'class'
    classes.index.name = 'sample'
    return classes


def align_samples(counts, classes):
    """
    Check that counts and classes cover the same samples and align them.

    Args:
        counts (pd.DataFrame): Count matrix (genes x samples)
        classes (pd.Series): Class label per sample id

    Returns:
        pd.Series: Class labels in count-matrix column order

    Raises:
        DataMismatchError: If sample ids differ or a sample has more than
                           one label
    """
    duplicated = classes.index[classes.index.duplicated()].unique()
    if len(duplicated) > 0:
        raise DataMismatchError(
            f"Samples listed more than once in the class table: "
            f"{sorted(duplicated)}"
        )

    count_samples = set(counts.columns)
    class_samples = set(classes.index)

    if count_samples != class_samples:
        missing_labels = sorted(count_samples - class_samples)
        missing_counts = sorted(class_samples - count_samples)
        raise DataMismatchError(
            "Sample ids do not match between count matrix and class table: "
            f"{len(missing_labels)} without a class {missing_labels[:10]}, "
            f"{len(missing_counts)} without counts {missing_counts[:10]}"
        )

    if classes.isna().any():
        unlabeled = sorted(classes.index[classes.isna()])
        raise DataMismatchError(f"Samples without a class label: {unlabeled}")

    return classes.reindex(counts.columns)


def load_inputs(counts_path, classes_path, class_col=None):
    """
    Load and validate the count matrix and class table.

    Args:
        counts_path (str): Path to the raw count matrix
        classes_path (str): Path to the class definition table
        class_col (str): Column with the class label (optional)

    Returns:
        tuple: (counts, classes)
            - counts: Count matrix (genes x samples)
            - classes: Class labels aligned to the count columns
    """
    print(f"Loading counts from: {counts_path}")
    counts = read_count_matrix(counts_path)

    print(f"Loading classes from: {classes_path}")
    classes = read_class_table(classes_path, class_col=class_col)

    classes = align_samples(counts, classes)

    print(f"  Counts shape (genes x samples): {counts.shape}")
    print(f"  Class sizes: {classes.value_counts().to_dict()}")

    return counts, classes


def read_matrix(path):
    """
    Read a numeric genes x samples matrix written by a previous step.

    Args:
        path (str): Tab-delimited file with gene ids as row names

    Returns:
        pd.DataFrame: Float matrix (genes x samples)
    """
    df = pd.read_csv(path, sep='\t', header=0, index_col=0, quotechar='"')
    df.index = df.index.astype(str)
    df.index.name = None
    df.columns = [str(c) for c in df.columns]
    return df.astype(float)


def read_results_table(path):
    """
    Read a contrast result table written by a previous step.

    Args:
        path (str): Tab-delimited results file indexed by gene id

    Returns:
        pd.DataFrame: Results with log2FoldChange, pvalue, padj columns
    """
    res = pd.read_csv(path, sep='\t', header=0, index_col=0)
    res.index = res.index.astype(str)
    res.index.name = None
    return res
