"""Tests for contrasts, the backend interface and pydeseq2 testing."""

import numpy as np
import pandas as pd
import pytest

from rnaseq_gsea.config import CLASS_ORDER
from rnaseq_gsea.deseq2_utils import (
    Contrast, pairwise_contrast, one_vs_rest_contrast, build_contrasts,
    run_contrasts, get_sig_genes,
)


class TestContrasts:

    def test_pairwise(self):
        c = pairwise_contrast('Mesenchymal', 'Immunoreactive')
        assert c.name == 'Mesenchymal_vs_Immunoreactive'
        assert c.weights == {'Mesenchymal': 1.0, 'Immunoreactive': -1.0}

    def test_one_vs_rest(self):
        c = one_vs_rest_contrast('Proliferative', CLASS_ORDER)
        assert c.name == 'Proliferative_vs_rest'
        assert c.weights['Proliferative'] == 1.0
        for other in ['Immunoreactive', 'Mesenchymal', 'Differentiated']:
            assert c.weights[other] == pytest.approx(-1.0 / 3)

    def test_one_vs_rest_needs_other_groups(self):
        with pytest.raises(ValueError):
            one_vs_rest_contrast('A', ['A'])

    def test_weights_must_sum_to_zero(self):
        with pytest.raises(ValueError, match="sum to zero"):
            Contrast('bad', {'A': 1.0, 'B': -0.5})

    def test_default_protocol_has_five_contrasts(self):
        contrasts = build_contrasts()
        assert [c.name for c in contrasts] == [
            'Mesenchymal_vs_Immunoreactive',
            'Immunoreactive_vs_rest',
            'Mesenchymal_vs_rest',
            'Differentiated_vs_rest',
            'Proliferative_vs_rest',
        ]

    def test_pairs_only(self):
        contrasts = build_contrasts(groups=['A', 'B'], pairs=[('B', 'A')],
                                    one_vs_rest=False)
        assert contrasts == [pairwise_contrast('B', 'A')]

    def test_configured_pairs_need_both_classes(self):
        contrasts = build_contrasts(groups=['A', 'B'])
        assert [c.name for c in contrasts] == ['A_vs_rest', 'B_vs_rest']


class TestRunContrasts:

    def test_one_table_per_contrast(self, small_counts, small_classes, fake_backend):
        contrasts = build_contrasts(groups=['A', 'B'], pairs=[('B', 'A')])
        results, backend = run_contrasts(small_counts, small_classes, contrasts,
                                         backend=fake_backend)
        assert backend is fake_backend
        assert list(results) == ['B_vs_A', 'A_vs_rest', 'B_vs_rest']
        assert fake_backend.tested == ['B_vs_A', 'A_vs_rest', 'B_vs_rest']
        for res in results.values():
            assert list(res.index) == list(small_counts.index)
            assert {'log2FoldChange', 'pvalue', 'padj'} <= set(res.columns)

    def test_get_sig_genes(self, contrast_results):
        sig = get_sig_genes(contrast_results, pval=0.05)
        assert list(sig.index) == ['MUC16|94025', 'CD8A|925', 'GAPDH|2597']

    def test_get_sig_genes_fold_change(self, contrast_results):
        sig = get_sig_genes(contrast_results, pval=0.05, l2fc=1.0)
        assert list(sig.index) == ['MUC16|94025', 'CD8A|925']


@pytest.fixture
def simulated_counts():
    """Three classes of four samples; the first ten genes are up in class A."""
    rng = np.random.RandomState(0)
    n_genes = 200
    groups = ['A'] * 4 + ['B'] * 4 + ['C'] * 4
    base = rng.uniform(50, 500, size=n_genes)

    data = np.zeros((n_genes, len(groups)), dtype=int)
    for j, group in enumerate(groups):
        mu = base.copy()
        if group == 'A':
            mu[:10] *= 8
        # Negative binomial with dispersion 0.05
        r = 20.0
        data[:, j] = rng.negative_binomial(r, r / (r + mu))

    samples = [f'S{j}' for j in range(len(groups))]
    counts = pd.DataFrame(data, index=[f'G{i}|{i}' for i in range(n_genes)],
                          columns=samples)
    classes = pd.Series(groups, index=samples)
    return counts, classes


class TestPyDESeq2Backend:

    @pytest.fixture(autouse=True)
    def _requires_pydeseq2(self):
        pytest.importorskip('pydeseq2')

    def test_one_vs_rest_and_pairwise(self, simulated_counts):
        from rnaseq_gsea.deseq2_utils import PyDESeq2Backend

        counts, classes = simulated_counts
        contrasts = [pairwise_contrast('A', 'B'), one_vs_rest_contrast('A', ['A', 'B', 'C'])]
        results, backend = run_contrasts(counts, classes, contrasts,
                                         backend=PyDESeq2Backend(install=False))

        for res in results.values():
            assert len(res) == len(counts)
            assert res['pvalue'].notna().all()
            assert res['padj'].notna().all()

        up = results['A_vs_rest'].loc[[f'G{i}|{i}' for i in range(10)]]
        assert (up['log2FoldChange'] > 1.5).all()
        assert (up['padj'] < 0.05).all()

        pair = results['A_vs_B'].loc[[f'G{i}|{i}' for i in range(10)]]
        assert (pair['log2FoldChange'] > 1.5).all()

    def test_contrast_vector_matches_group_means(self, simulated_counts):
        from rnaseq_gsea.deseq2_utils import PyDESeq2Backend

        counts, classes = simulated_counts
        backend = PyDESeq2Backend(install=False).fit(counts, classes)

        design = np.asarray(backend.dds.obsm['design_matrix'], dtype=float)
        rows = {g: design[list(classes).index(g)] for g in ['A', 'B', 'C']}

        vector = backend.contrast_vector(one_vs_rest_contrast('B', ['A', 'B', 'C']))
        expected = rows['B'] - (rows['A'] + rows['C']) / 2
        assert np.allclose(vector, expected)

    def test_normalized_counts_shape(self, simulated_counts):
        from rnaseq_gsea.deseq2_utils import PyDESeq2Backend

        counts, classes = simulated_counts
        backend = PyDESeq2Backend(install=False).fit(counts, classes)
        normalized = backend.normalized_counts()
        assert normalized.shape == counts.shape
        assert list(normalized.index) == list(counts.index)
        assert list(normalized.columns) == list(counts.columns)
