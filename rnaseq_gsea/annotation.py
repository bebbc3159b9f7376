"""
Gene annotation utilities.

This module provides swappable gene symbol -> description lookups:
- Ensembl BioMart (pybiomart), the default
- MyGene.info (mygene)
- A local symbol/description table

Lookups may be partial: symbols the source does not know are simply
absent from the returned table.
"""

import re
import warnings

import pandas as pd

from .config import (
    BIOMART_HOST, BIOMART_DATASET, ANNOTATION_SPECIES, ANNOTATION_BATCH_SIZE,
)
from .utils import require_package

warnings.filterwarnings('ignore')

_SOURCE_TAG = re.compile(r'\s*\[Source:.*$')


def empty_annotation():
    """Annotation table without any rows."""
    return pd.DataFrame({'symbol': pd.Series(dtype=str),
                         'description': pd.Series(dtype=str)})


def clean_descriptions(descriptions):
    """
    Strip the trailing ' [Source:...]' tag Ensembl appends to descriptions.

    Args:
        descriptions (pd.Series): Raw descriptions

    Returns:
        pd.Series: Cleaned descriptions ('' for missing values)
    """
    descriptions = descriptions.fillna('').astype(str)
    return descriptions.map(lambda d: _SOURCE_TAG.sub('', d).strip())


def finalize_annotation(df):
    """
    Normalize a raw lookup result.

    Drops rows without a symbol, cleans descriptions and keeps the first
    row per symbol.

    Args:
        df (pd.DataFrame): Table with 'symbol' and 'description' columns

    Returns:
        pd.DataFrame: One row per symbol
    """
    if df is None or len(df) == 0:
        return empty_annotation()

    df = df[['symbol', 'description']].copy()
    df = df[df['symbol'].notna()]
    df['symbol'] = df['symbol'].astype(str).str.strip()
    df = df[df['symbol'] != '']
    df['description'] = clean_descriptions(df['description'])
    df = df.drop_duplicates(subset='symbol', keep='first')
    return df.reset_index(drop=True)


def _unique(symbols):
    seen = set()
    out = []
    for s in symbols:
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return out


class AnnotationSource:
    """Interface of a gene symbol -> description lookup."""

    name = 'annotation'

    def lookup(self, symbols):
        """
        Look up descriptions for gene symbols.

        Args:
            symbols (list): Gene symbols

        Returns:
            pd.DataFrame: Columns 'symbol' and 'description'
        """
        raise NotImplementedError


class BiomartAnnotation(AnnotationSource):
    """HGNC symbol descriptions from Ensembl BioMart."""

    name = 'biomart'

    def __init__(self, host=BIOMART_HOST, dataset=BIOMART_DATASET,
                 batch_size=ANNOTATION_BATCH_SIZE, install=True):
        pybiomart = require_package('pybiomart', install=install)
        self._server_cls = pybiomart.Server
        self.host = host
        self.dataset = dataset
        self.batch_size = batch_size

    def lookup(self, symbols):
        symbols = _unique(symbols)
        if not symbols:
            return empty_annotation()

        frames = []
        try:
            server = self._server_cls(host=self.host)
            dataset = server.marts['ENSEMBL_MART_ENSEMBL'].datasets[self.dataset]

            for start in range(0, len(symbols), self.batch_size):
                batch = symbols[start:start + self.batch_size]
                frames.append(dataset.query(
                    attributes=['hgnc_symbol', 'description'],
                    filters={'hgnc_symbol': batch},
                    use_attr_names=True,
                ))
        except Exception as e:
            print(f"Warning: BioMart lookup failed: {e}")
            return empty_annotation()

        df = pd.concat(frames, ignore_index=True)
        df = df.rename(columns={'hgnc_symbol': 'symbol'})
        print(f"  BioMart described {df['symbol'].nunique()}/{len(symbols)} symbols")
        return finalize_annotation(df)


class MyGeneAnnotation(AnnotationSource):
    """Gene names from MyGene.info."""

    name = 'mygene'

    def __init__(self, species=ANNOTATION_SPECIES, install=True):
        mygene = require_package('mygene', install=install)
        self._client = mygene.MyGeneInfo()
        self.species = species

    def lookup(self, symbols):
        symbols = _unique(symbols)
        if not symbols:
            return empty_annotation()

        try:
            ginfo = self._client.querymany(
                symbols,
                scopes='symbol',
                species=self.species,
                fields='name',
                verbose=False,
            )
        except Exception as e:
            print(f"Warning: MyGene lookup failed: {e}")
            return empty_annotation()

        rows = []
        for g in ginfo:
            if g.get('notfound') or 'name' not in g:
                continue
            rows.append({'symbol': g['query'], 'description': g['name']})

        print(f"  MyGene described {len(rows)}/{len(symbols)} symbols")
        return finalize_annotation(pd.DataFrame(rows, columns=['symbol', 'description']))


class TableAnnotation(AnnotationSource):
    """
    Descriptions from a local table.

    Args:
        table (str or dict): Path to a tab-delimited file whose first two
                             columns are symbol and description, or a
                             symbol -> description mapping
    """

    name = 'table'

    def __init__(self, table=None):
        if table is None:
            table = {}
        if isinstance(table, dict):
            df = pd.DataFrame({'symbol': list(table.keys()),
                               'description': list(table.values())})
        else:
            df = pd.read_csv(table, sep='\t', header=0, dtype=str, quotechar='"')
            df = df.iloc[:, :2]
            df.columns = ['symbol', 'description']
        self.table = finalize_annotation(df)

    def lookup(self, symbols):
        wanted = set(symbols)
        return self.table[self.table['symbol'].isin(wanted)].reset_index(drop=True)


def get_annotation_source(source):
    """
    Create an annotation source from its configuration name.

    Args:
        source (str): 'biomart', 'mygene', 'none', or a path to a local
                      symbol/description table

    Returns:
        AnnotationSource: Lookup strategy
    """
    if isinstance(source, AnnotationSource):
        return source
    if source == 'biomart':
        return BiomartAnnotation()
    if source == 'mygene':
        return MyGeneAnnotation()
    if source is None or source == 'none':
        return TableAnnotation()
    return TableAnnotation(source)
