"""Tests for dependency loading and path helpers."""

import os
import subprocess
from types import SimpleNamespace

import pytest

from rnaseq_gsea.exceptions import MissingDependencyError
from rnaseq_gsea.utils import require_package, ensure_dir, contrast_file

MISSING = 'rnaseq_gsea_no_such_module'


@pytest.fixture
def pip_calls(monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return SimpleNamespace(returncode=1)

    monkeypatch.setattr(subprocess, 'run', fake_run)
    return calls


class TestRequirePackage:

    def test_available_module(self, pip_calls):
        module = require_package('json')
        assert module.__name__ == 'json'
        assert pip_calls == []

    def test_single_install_attempt(self, pip_calls):
        with pytest.raises(MissingDependencyError, match=MISSING):
            require_package(MISSING)
        assert len(pip_calls) == 1
        assert pip_calls[0][-3:] == ['pip', 'install', MISSING]

    def test_pip_name(self, pip_calls):
        with pytest.raises(MissingDependencyError):
            require_package(f'{MISSING}.sub', pip_name='other-dist')
        assert pip_calls[0][-1] == 'other-dist'

    def test_no_install(self, pip_calls):
        with pytest.raises(MissingDependencyError):
            require_package(MISSING, install=False)
        assert pip_calls == []

    def test_is_import_error(self, pip_calls):
        with pytest.raises(ImportError):
            require_package(MISSING, install=False)


def test_ensure_dir(tmp_path):
    path = str(tmp_path / 'a' / 'b')
    assert ensure_dir(path) == path
    assert os.path.isdir(path)
    ensure_dir(path)


def test_contrast_file():
    path = contrast_file('results', 'Mesenchymal_vs_rest', '_ranks.rnk')
    assert path == os.path.join('results', 'Mesenchymal_vs_rest_ranks.rnk')
