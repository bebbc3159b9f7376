"""
DESeq2 utilities for differential gene expression analysis.

This module defines the contrasts tested between sample classes and a
swappable statistics backend. The default backend wraps pydeseq2: a
single model is fit on all classes, so size factors and dispersions are
shared, and every contrast is then tested against that fit.
"""

import warnings

import numpy as np
import pandas as pd

from .config import (
    CLASS_ORDER, PAIRWISE_CONTRASTS, ONE_VS_REST, FDR_THRESHOLD, N_CPUS,
)
from .utils import require_package

warnings.filterwarnings('ignore')


class Contrast:
    """
    A linear comparison between class means.

    Args:
        name (str): Contrast name, used in output file names
        weights (dict): Weight per class label; weights sum to zero
    """

    def __init__(self, name, weights):
        total = sum(weights.values())
        if not np.isclose(total, 0.0):
            raise ValueError(f"Contrast weights must sum to zero, got {total}")
        self.name = name
        self.weights = dict(weights)

    def __repr__(self):
        return f"Contrast({self.name!r}, {self.weights!r})"

    def __eq__(self, other):
        return (isinstance(other, Contrast) and self.name == other.name
                and self.weights == other.weights)


def pairwise_contrast(group, reference):
    """Contrast of one class against another (group - reference)."""
    return Contrast(f'{group}_vs_{reference}', {group: 1.0, reference: -1.0})


def one_vs_rest_contrast(group, groups):
    """
    Contrast of one class against the mean of all the other classes.

    Args:
        group (str): Class of interest
        groups (list): All class labels

    Returns:
        Contrast: group - mean(others)
    """
    others = [g for g in groups if g != group]
    if not others:
        raise ValueError(f"No other classes to contrast {group} against")
    weights = {group: 1.0}
    for g in others:
        weights[g] = -1.0 / len(others)
    return Contrast(f'{group}_vs_rest', weights)


def build_contrasts(groups=None, pairs=None, one_vs_rest=None):
    """
    Build the list of contrasts for a protocol.

    Args:
        groups (list): Class labels (defaults to config.CLASS_ORDER)
        pairs (list): (group, reference) tuples (defaults to the
                      config.PAIRWISE_CONTRASTS pairs among `groups`)
        one_vs_rest (bool): Add one contrast per class against the rest
                            (defaults to config.ONE_VS_REST)

    Returns:
        list: Contrast objects, pairwise first
    """
    if groups is None:
        groups = CLASS_ORDER
    if pairs is None:
        # Configured pairs only apply when both classes are present
        pairs = [(g, ref) for g, ref in PAIRWISE_CONTRASTS
                 if g in groups and ref in groups]
    if one_vs_rest is None:
        one_vs_rest = ONE_VS_REST

    contrasts = [pairwise_contrast(group, ref) for group, ref in pairs]
    if one_vs_rest:
        contrasts += [one_vs_rest_contrast(g, groups) for g in groups]
    return contrasts


class DifferentialExpressionBackend:
    """
    Interface of a differential expression statistics capability.

    A backend is fit once on the filtered counts and the class labels,
    then tested once per contrast. Results are tables indexed by gene id
    with at least 'log2FoldChange', 'pvalue' and 'padj' columns.
    """

    def fit(self, counts, classes):
        raise NotImplementedError

    def test(self, contrast):
        raise NotImplementedError

    def normalized_counts(self):
        raise NotImplementedError


class PyDESeq2Backend(DifferentialExpressionBackend):
    """
    pydeseq2-backed statistics: median-of-ratios size factors, shared
    gene-wise dispersions and a negative binomial GLM with design
    '~condition'. Contrasts are Wald tests on numeric contrast vectors,
    with Benjamini-Hochberg adjusted p-values for every gene.
    """

    def __init__(self, n_cpus=N_CPUS, alpha=FDR_THRESHOLD, install=True):
        dds_module = require_package('pydeseq2.dds', 'pydeseq2', install=install)
        ds_module = require_package('pydeseq2.ds', 'pydeseq2', install=False)
        inference_module = require_package('pydeseq2.default_inference',
                                           'pydeseq2', install=False)
        self._DeseqDataSet = dds_module.DeseqDataSet
        self._DeseqStats = ds_module.DeseqStats
        self._inference = inference_module.DefaultInference(n_cpus=n_cpus)
        self.alpha = alpha
        self.dds = None
        self.classes = None

    def fit(self, counts, classes):
        """
        Fit the DESeq2 model on all classes.

        Args:
            counts (pd.DataFrame): Filtered count matrix (genes x samples)
            classes (pd.Series): Class labels aligned to the count columns
        """
        metadata = pd.DataFrame(
            {'condition': [str(c) for c in classes]},
            index=counts.columns,
        )
        # pydeseq2 expects samples x genes
        counts_t = counts.T.astype(int)

        dds = self._DeseqDataSet(
            counts=counts_t,
            metadata=metadata,
            design='~condition',
            refit_cooks=True,
            inference=self._inference,
            quiet=True,
        )
        dds.deseq2()

        self.dds = dds
        self.classes = pd.Series(list(metadata['condition']), index=counts.columns)
        return self

    def contrast_vector(self, contrast):
        """
        Translate class weights into a vector over the design coefficients.

        Every sample of a class has the same design row, and that row
        times the coefficients is the class mean, so the contrast vector
        is the weighted sum of one design row per class.

        Args:
            contrast (Contrast): Contrast to translate

        Returns:
            np.ndarray: Contrast vector (one entry per design column)
        """
        if self.dds is None:
            raise RuntimeError("Backend must be fit before testing contrasts")

        design = self.dds.obsm['design_matrix']
        design = pd.DataFrame(np.asarray(design, dtype=float),
                              index=self.dds.obs_names)

        vector = np.zeros(design.shape[1])
        for group, weight in contrast.weights.items():
            samples = self.classes.index[self.classes == group]
            if len(samples) == 0:
                raise ValueError(
                    f"Contrast {contrast.name} uses class '{group}' "
                    f"which has no samples"
                )
            vector += weight * design.loc[samples[0]].to_numpy()
        return vector

    def test(self, contrast):
        """
        Run the Wald test for one contrast.

        Args:
            contrast (Contrast): Contrast to test

        Returns:
            pd.DataFrame: Results with log2FoldChange, pvalue, padj columns
        """
        stats_results = self._DeseqStats(
            self.dds,
            contrast=self.contrast_vector(contrast),
            alpha=self.alpha,
            cooks_filter=False,
            independent_filter=False,
            inference=self._inference,
            quiet=True,
        )
        stats_results.summary()
        return stats_results.results_df.copy()

    def normalized_counts(self):
        """Size-factor normalized counts (genes x samples)."""
        if self.dds is None:
            raise RuntimeError("Backend must be fit before normalizing")
        normed = pd.DataFrame(
            np.asarray(self.dds.layers['normed_counts']),
            index=self.dds.obs_names,
            columns=self.dds.var_names,
        )
        return normed.T


def run_contrasts(counts, classes, contrasts, backend=None):
    """
    Run differential expression testing for several contrasts.

    Args:
        counts (pd.DataFrame): Filtered count matrix (genes x samples)
        classes (pd.Series): Class labels aligned to the count columns
        contrasts (list): Contrast objects
        backend (DifferentialExpressionBackend): Statistics backend
                                                 (defaults to pydeseq2)

    Returns:
        tuple: (results, backend)
            - results: dict of contrast name -> result table
            - backend: The fitted backend
    """
    if backend is None:
        backend = PyDESeq2Backend()

    print(f"  Fitting model on {counts.shape[0]} genes x "
          f"{counts.shape[1]} samples")
    backend.fit(counts, classes)

    results = {}
    for contrast in contrasts:
        res = backend.test(contrast)
        n_sig = len(get_sig_genes(res, pval=FDR_THRESHOLD))
        print(f"  {contrast.name}: {n_sig} genes with padj < {FDR_THRESHOLD}")
        results[contrast.name] = res

    return results, backend


def get_sig_genes(res, pval=FDR_THRESHOLD, l2fc=0):
    """
    Filter for significantly differentially expressed genes.

    Args:
        res (pd.DataFrame): Contrast results
        pval (float): Adjusted p-value threshold
        l2fc (float): Log2 fold change threshold (absolute value)

    Returns:
        pd.DataFrame: Filtered results with significant genes only
    """
    sigs = res[(res.padj < pval) & (abs(res.log2FoldChange) >= l2fc)]
    return sigs
