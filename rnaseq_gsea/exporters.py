"""
Writers for the files consumed by enrichment tools.

This module produces, per contrast:
- A list of significant gene symbols (g:Profiler input)
- A pre-ranked gene list (.rnk, GSEA pre-ranked input)

and, once per run:
- An annotated normalized expression table (GSEA expression input)
- A categorical class file (.cls, GSEA phenotype input)

The layouts are fixed by the consuming tools and are reproduced exactly.
"""

import csv

import numpy as np
import pandas as pd

from .config import FDR_THRESHOLD, SAMPLE_ID_LENGTH
from .annotation import AnnotationSource, finalize_annotation
from .exceptions import DataMismatchError, FormatWriteError
from .preprocessing import filter_unannotated, gene_symbol, split_gene_ids

# Smallest positive normal double; p-values of 0 are clamped to it
MIN_PVALUE = np.finfo(float).tiny


def _write_text(path, text):
    try:
        with open(path, 'w', newline='') as f:
            f.write(text)
    except OSError as e:
        raise FormatWriteError(f"Could not write {path}: {e}") from e
    return path


def _write_frame(df, path, **kwargs):
    kwargs.setdefault('sep', '\t')
    kwargs.setdefault('lineterminator', '\n')
    try:
        df.to_csv(path, **kwargs)
    except OSError as e:
        raise FormatWriteError(f"Could not write {path}: {e}") from e
    return path


def significant_symbols(res, fdr=FDR_THRESHOLD):
    """
    Gene symbols of the rows with an adjusted p-value below `fdr`.

    Args:
        res (pd.DataFrame): Contrast results indexed by 'SYMBOL|ID'
        fdr (float): Adjusted p-value threshold (strictly less than)

    Returns:
        list: Symbols in result-table order
    """
    sig = res[res['padj'] < fdr]
    return [gene_symbol(gene_id) for gene_id in sig.index]


def write_significant_genes(res, path, fdr=FDR_THRESHOLD):
    """
    Write significant gene symbols, one per line, without header.

    Args:
        res (pd.DataFrame): Contrast results
        path (str): Output path ('*_allsignificantgenes.txt')
        fdr (float): Adjusted p-value threshold

    Returns:
        list: The symbols written
    """
    symbols = significant_symbols(res, fdr=fdr)
    text = ''.join(f'{s}\n' for s in symbols)
    _write_text(path, text)
    return symbols


def compute_rank_scores(res):
    """
    Rank every gene by sign(log2 fold change) * -log10(p-value).

    A fold change of exactly 0 gives a score of 0 whatever the p-value.
    P-values of 0 are clamped to the smallest positive double, so the
    score saturates near +/-307.65 instead of becoming infinite. Genes
    whose score is undefined (NA p-value or fold change) are left out.

    Args:
        res (pd.DataFrame): Contrast results with 'log2FoldChange' and
                            'pvalue' columns

    Returns:
        pd.DataFrame: Columns 'GeneName' and 'rank', sorted by rank
                      (descending)
    """
    fc = res['log2FoldChange'].to_numpy(dtype=float)
    pvalues = np.clip(res['pvalue'].to_numpy(dtype=float), MIN_PVALUE, None)

    sign = np.sign(fc)
    with np.errstate(invalid='ignore'):
        scores = sign * -np.log10(pvalues)
    # sign(0) = 0 even when -log10(p) is large; + 0.0 clears negative zeros
    scores = np.where(sign == 0, 0.0, scores) + 0.0

    ranks = pd.DataFrame({
        'GeneName': [gene_symbol(gene_id) for gene_id in res.index],
        'rank': scores,
    })

    # Untested genes (NA p-value or fold change) cannot be ranked
    missing = ~np.isfinite(scores)
    if missing.any():
        print(f"  Warning: dropping {int(missing.sum())} genes without a rank score")
        ranks = ranks[~missing]

    ranks = ranks.sort_values('rank', ascending=False, kind='mergesort')
    return ranks.reset_index(drop=True)


def write_rank_file(res, path):
    """
    Write a two-column GSEA rank file with a 'GeneName'/'rank' header.

    Args:
        res (pd.DataFrame): Contrast results
        path (str): Output path ('*_ranks.rnk')

    Returns:
        pd.DataFrame: The ranks written
    """
    ranks = compute_rank_scores(res)
    _write_frame(ranks, path, index=False, quoting=csv.QUOTE_NONE)
    return ranks


def build_expression_table(normalized, annotation, sample_id_length=SAMPLE_ID_LENGTH):
    """
    Build the annotated expression table used as GSEA expression input.

    Composite ids are split into symbol and accession, unannotated genes
    are dropped, descriptions are left-merged by symbol (empty when the
    lookup has no match) and sample ids are truncated.

    Args:
        normalized (pd.DataFrame): Normalized expression (genes x samples)
                                   indexed by 'SYMBOL|ID'
        annotation (AnnotationSource or pd.DataFrame): Description lookup,
                   or a table with 'symbol' and 'description' columns
        sample_id_length (int): Number of characters kept from sample ids

    Returns:
        pd.DataFrame: Columns 'Name', 'Description', then one per sample
    """
    expr = filter_unannotated(normalized)
    ids = split_gene_ids(expr.index)

    if isinstance(annotation, AnnotationSource):
        annotation = annotation.lookup(ids['symbol'].tolist())
    annotation = finalize_annotation(annotation)
    annotation = annotation.rename(columns={'symbol': 'Name',
                                            'description': 'Description'})

    table = pd.DataFrame({'Name': ids['symbol'].to_numpy()})
    table = table.merge(annotation, on='Name', how='left')
    table['Description'] = (table['Description'].fillna('')
                            .str.replace(r'[\t\r\n]+', ' ', regex=True))

    values = expr.reset_index(drop=True)
    values.columns = [str(c)[:sample_id_length] for c in expr.columns]

    return pd.concat([table, values], axis=1)


def write_expression_table(table, path):
    """Write the annotated expression table (tab-separated, with header)."""
    return _write_frame(table, path, index=False, quoting=csv.QUOTE_NONE,
                        escapechar='\\')


def format_cls(classes, class_order):
    """
    Format class labels as a categorical GSEA .cls file.

    Layout:
        <n samples> <n classes> 1
        # <class 1> <class 2> ... <class k>
        <label 1>\\t<label 2>\\t...\\t<label n>

    Args:
        classes (iterable): Class label per sample, in sample order
        class_order (list): Fixed enumeration of the class names

    Returns:
        str: File content, each line ending with a newline

    Raises:
        DataMismatchError: If a label is not part of `class_order`
    """
    labels = [str(c) for c in classes]
    unknown = sorted(set(labels) - set(class_order))
    if unknown:
        raise DataMismatchError(
            f"Class labels {unknown} are not in the class enumeration {list(class_order)}"
        )

    lines = [
        f'{len(labels)} {len(class_order)} 1',
        '# ' + ' '.join(class_order),
        '\t'.join(labels),
    ]
    return '\n'.join(lines) + '\n'


def write_cls_file(classes, path, class_order):
    """
    Write the categorical class file.

    Args:
        classes (iterable): Class label per sample, in sample order
        path (str): Output path ('*.cls')
        class_order (list): Fixed enumeration of the class names

    Returns:
        str: Output path
    """
    return _write_text(path, format_cls(classes, class_order))


def write_results_table(res, path):
    """Write a full contrast result table indexed by gene id."""
    return _write_frame(res, path, index=True, index_label='gene')


def write_matrix(df, path):
    """Write a genes x samples matrix with gene ids as row names."""
    return _write_frame(df, path, index=True)


def write_classes(classes, path):
    """Write aligned class labels as a 'sample'/'class' table."""
    df = pd.DataFrame({'sample': list(classes.index), 'class': list(classes)})
    return _write_frame(df, path, index=False)
