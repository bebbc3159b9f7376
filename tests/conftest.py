"""
Pytest configuration and shared fixtures.

Provides small count matrices, class tables written as quoted
tab-delimited files, and a deterministic statistics backend so the
pipeline can be exercised without fitting a real model.
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

from rnaseq_gsea.deseq2_utils import DifferentialExpressionBackend
from rnaseq_gsea.preprocessing import compute_cpm


class FakeBackend(DifferentialExpressionBackend):
    """
    Deterministic backend: log2 fold changes of class mean CPMs,
    p-values decreasing with the absolute fold change.
    """

    def __init__(self):
        self.counts = None
        self.classes = None
        self.tested = []

    def fit(self, counts, classes):
        self.counts = counts
        self.classes = pd.Series(list(classes), index=counts.columns)
        return self

    def test(self, contrast):
        self.tested.append(contrast.name)
        cpm = compute_cpm(self.counts)
        lfc = np.zeros(len(cpm))
        for group, weight in contrast.weights.items():
            samples = self.classes.index[self.classes == group]
            lfc += weight * np.log2(cpm[samples].mean(axis=1).to_numpy() + 1)
        pvalue = np.exp(-4 * np.abs(lfc))
        padj = np.minimum(pvalue * len(pvalue), 1.0)
        return pd.DataFrame({
            'baseMean': self.counts.mean(axis=1).to_numpy(),
            'log2FoldChange': lfc,
            'pvalue': pvalue,
            'padj': padj,
        }, index=self.counts.index)

    def normalized_counts(self):
        return compute_cpm(self.counts)


def write_quoted_table(df, path, index_label):
    """Write a table the way R's write.table(quote=TRUE) does."""
    lines = ['\t'.join(f'"{c}"' for c in [index_label] + list(df.columns))]
    for idx, row in df.iterrows():
        values = [f'"{v}"' if isinstance(v, str) else str(v) for v in row]
        lines.append('\t'.join([f'"{idx}"'] + values))
    path.write_text('\n'.join(lines) + '\n')
    return path


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def small_counts():
    """4 genes x 4 samples, two classes of two samples."""
    return pd.DataFrame({
        'TCGA-04-1331-01A': [500, 20, 300, 80],
        'TCGA-04-1332-01A': [520, 25, 310, 90],
        'TCGA-04-1335-01A': [100, 200, 290, 85],
        'TCGA-04-1336-01A': [110, 210, 305, 70],
    }, index=['MUC16|94025', 'CD8A|925', 'GAPDH|2597', 'TP53|7157'])


@pytest.fixture
def small_classes(small_counts):
    return pd.Series(['A', 'A', 'B', 'B'], index=small_counts.columns,
                     name='class')


@pytest.fixture
def counts_file(tmp_path, small_counts):
    return write_quoted_table(small_counts, tmp_path / 'counts.txt', 'gene')


@pytest.fixture
def classes_file(tmp_path, small_classes):
    df = pd.DataFrame({'SUBTYPE': list(small_classes)}, index=small_classes.index)
    return write_quoted_table(df, tmp_path / 'classes.txt', 'barcode')


@pytest.fixture
def contrast_results():
    """Result table of one contrast."""
    return pd.DataFrame({
        'log2FoldChange': [2.5, -1.2, 0.0, 0.3, -3.0],
        'pvalue': [1e-8, 0.001, 1e-20, 0.6, 0.0],
        'padj': [1e-6, 0.049, 1e-18, 0.8, 0.05],
    }, index=['MUC16|94025', 'CD8A|925', 'GAPDH|2597', 'TP53|7157', 'KRT7|3855'])
