"""Tests for CPM computation and gene filtering."""

import numpy as np
import pandas as pd
import pytest

from rnaseq_gsea.preprocessing import (
    compute_cpm, filter_low_expression, is_unannotated, filter_unannotated,
    filter_counts, gene_symbol, split_gene_ids,
)


@pytest.fixture
def random_counts():
    rng = np.random.RandomState(7)
    data = rng.negative_binomial(n=2, p=0.01, size=(60, 12))
    data[:15] = rng.poisson(0.2, size=(15, 12))
    index = [f'GENE{i}|{1000 + i}' for i in range(60)]
    index[3] = 'LOC100128288|100128288'
    index[20] = '?|100130426'
    index[21] = 'SLC35E2|9906?'
    return pd.DataFrame(data, index=index,
                        columns=[f'S{j}' for j in range(12)])


class TestComputeCpm:

    def test_columns_sum_to_one_million(self, small_counts):
        cpm = compute_cpm(small_counts)
        assert np.allclose(cpm.sum(axis=0), 1e6)

    def test_value(self):
        counts = pd.DataFrame({'S1': [1, 3]}, index=['A|1', 'B|2'])
        cpm = compute_cpm(counts)
        assert cpm.loc['A|1', 'S1'] == pytest.approx(250000.0)

    def test_empty_library(self):
        counts = pd.DataFrame({'S1': [0, 0], 'S2': [1, 1]}, index=['A|1', 'B|2'])
        cpm = compute_cpm(counts)
        assert (cpm['S1'] == 0).all()


class TestFilterLowExpression:

    def test_rows_never_increase(self, random_counts):
        for min_samples in [0, 1, 6, 12, 13]:
            filtered = filter_low_expression(random_counts, min_samples=min_samples)
            assert len(filtered) <= len(random_counts)

    def test_kept_rows_meet_threshold(self, random_counts):
        cpm = compute_cpm(random_counts)
        filtered = filter_low_expression(random_counts, min_samples=6, threshold=1.0)
        assert len(filtered) > 0
        for gene_id in filtered.index:
            assert (cpm.loc[gene_id] > 1.0).sum() >= 6
        dropped = random_counts.index.difference(filtered.index)
        for gene_id in dropped:
            assert (cpm.loc[gene_id] > 1.0).sum() < 6

    def test_threshold_is_strict(self):
        # Each sample has 1e6 total counts, so CPM equals the count
        counts = pd.DataFrame({'S1': [1, 999999], 'S2': [2, 999998]},
                              index=['A|1', 'B|2'])
        filtered = filter_low_expression(counts, min_samples=2, threshold=1.0)
        assert list(filtered.index) == ['B|2']

    def test_keeps_columns(self, random_counts):
        filtered = filter_low_expression(random_counts, min_samples=3)
        assert list(filtered.columns) == list(random_counts.columns)

    def test_everything_filtered_keeps_columns(self, small_counts):
        filtered = filter_counts(small_counts, min_samples=99)
        assert filtered.shape == (0, small_counts.shape[1])
        assert list(filtered.columns) == list(small_counts.columns)


class TestUnannotated:

    @pytest.mark.parametrize('gene_id', ['?|100130426', 'LOC100128288|100128288',
                                         'SLC35E2|9906?', 'LOC653635'])
    def test_excluded(self, gene_id):
        assert is_unannotated(gene_id)

    @pytest.mark.parametrize('gene_id', ['TP53|7157', 'CLOCK|9575', 'BLOC1S1|2647'])
    def test_kept(self, gene_id):
        assert not is_unannotated(gene_id)

    def test_filter_unannotated(self, random_counts):
        filtered = filter_unannotated(random_counts)
        assert len(filtered) == len(random_counts) - 3
        assert not any(is_unannotated(g) for g in filtered.index)

    def test_filter_unannotated_all_rows(self):
        df = pd.DataFrame({'S1': [1, 2], 'S2': [3, 4]},
                          index=['LOC1|1', '?|2'])
        filtered = filter_unannotated(df)
        assert filtered.shape == (0, 2)
        assert list(filtered.columns) == ['S1', 'S2']


def test_filter_counts_applies_both_rules(random_counts):
    filtered = filter_counts(random_counts, min_samples=1, threshold=1.0)
    assert 'LOC100128288|100128288' not in filtered.index
    assert '?|100130426' not in filtered.index
    assert len(filtered) <= len(filter_low_expression(random_counts, min_samples=1))


class TestGeneIds:

    def test_gene_symbol(self):
        assert gene_symbol('TP53|7157') == 'TP53'
        assert gene_symbol('TP53') == 'TP53'

    def test_split_gene_ids(self):
        ids = split_gene_ids(['TP53|7157', 'MUC16|94025', 'ORPHAN'])
        assert list(ids['symbol']) == ['TP53', 'MUC16', 'ORPHAN']
        assert list(ids['accession']) == ['7157', '94025', '']
        assert list(ids.index) == ['TP53|7157', 'MUC16|94025', 'ORPHAN']
