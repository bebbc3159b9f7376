"""Tests for the step scripts' command line handling."""

import importlib.util
import os
import sys

import pytest

SCRIPTS_DIR = os.path.join(os.path.dirname(__file__), '..', 'scripts')


def load_script(filename):
    path = os.path.join(SCRIPTS_DIR, filename)
    spec = importlib.util.spec_from_file_location(filename[:-3].lstrip('0123456789_'), path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestPlotHeatmapScript:

    def test_unknown_contrast_rejected(self, tmp_path, monkeypatch):
        script = load_script('04_plot_heatmap.py')
        monkeypatch.setattr(sys, 'argv', ['04_plot_heatmap.py',
                                          '--data-dir', str(tmp_path),
                                          '--contrast', 'Mesenchymal_vs_Proliferative'])
        with pytest.raises(ValueError, match="Unknown contrast"):
            script.main()

    def test_known_contrast_reads_step_outputs(self, tmp_path, monkeypatch):
        script = load_script('04_plot_heatmap.py')
        monkeypatch.setattr(sys, 'argv', ['04_plot_heatmap.py',
                                          '--data-dir', str(tmp_path),
                                          '--contrast', 'Proliferative_vs_rest'])
        # Passes validation, then fails on the missing step 02 outputs
        with pytest.raises(FileNotFoundError):
            script.main()
