from types import SimpleNamespace

import numpy as np
import pytest

from contactview.errors import StructureError
from contactview.model.matrix import build_residues
from contactview.services import structure
from contactview.services.structure import load_chain_bundles


def test_load_chain_bundles_groups_by_chain(ca_pdb):
    result = load_chain_bundles(str(ca_pdb), secondary_structure=False)
    assert result.nresidues == 7
    assert [bundle.chain for bundle in result.bundles] == ["A", "B"]
    first, second = result.bundles
    assert first.labels == ["ALA 1", "GLY 2", "LEU 3", "ALA 4"]
    assert second.labels == ["ARG 10", "ASP 11", "LYS 12"]
    assert first.x[1] == pytest.approx(3.8, abs=1e-3)
    assert second.y[0] == pytest.approx(6.0, abs=1e-3)
    assert first.ss == ["", "", "", ""]
    assert result.warnings == []


def test_loaded_bundles_feed_residue_records(ca_pdb):
    result = load_chain_bundles(str(ca_pdb), secondary_structure=False)
    residues = build_residues(result.bundles)
    assert [(residue.chain, residue.res_no) for residue in residues][-3:] == [
        ("B", 10),
        ("B", 11),
        ("B", 12),
    ]
    assert residues[4].residue_name == "ARG"


def test_secondary_structure_failure_is_a_warning(ca_pdb):
    result = load_chain_bundles(str(ca_pdb))
    assert result.warnings
    for bundle in result.bundles:
        assert bundle.ss == [""] * len(bundle.x)


def test_secondary_structure_from_backbone(backbone_pdb):
    result = load_chain_bundles(str(backbone_pdb))
    assert result.warnings == []
    assert result.nresidues == 8
    (bundle,) = result.bundles
    assert bundle.labels[0] == "ALA 1"
    # an isolated extended strand has no hydrogen bonds, so DSSP reports coil
    assert bundle.ss == [""] * 8


def test_dssp_codes_map_coil_to_blank(ca_pdb, monkeypatch):
    class FixedDSSP:
        def __init__(self, atoms):
            resids = sorted(set(int(resid) for resid in atoms.resids))
            codes = ["H", "-", "E", "-"][: len(resids)]
            self.results = SimpleNamespace(dssp=np.array([codes]), resids=np.array(resids))

        def run(self, stop=None):
            return self

    monkeypatch.setattr(structure, "DSSP", FixedDSSP)
    result = load_chain_bundles(str(ca_pdb))
    assert result.warnings == []
    first, second = result.bundles
    assert first.ss == ["H", "", "E", ""]
    assert second.ss == ["H", "", "E"]


def test_missing_file():
    with pytest.raises(StructureError) as excinfo:
        load_chain_bundles("/nonexistent/structure.pdb")
    assert excinfo.value.code == "file_not_found"


def test_empty_path():
    with pytest.raises(StructureError) as excinfo:
        load_chain_bundles("")
    assert excinfo.value.code == "invalid_input"


def test_selection_without_residues(ca_pdb):
    with pytest.raises(StructureError) as excinfo:
        load_chain_bundles(str(ca_pdb), selection="name ZZZ")
    assert excinfo.value.code == "no_residues"
