import numpy as np
import pytest

from contactview import config
from contactview.errors import EngineError
from contactview.model import ChainBundle
from contactview.model import matrix as matrix_module
from contactview.model.matrix import (
    build_distance_matrix,
    build_residues,
    chain_boundaries,
    chain_ranges,
    distance_matrix,
    parse_residue_label,
    suggest_scale,
)


def make_bundle(coords, labels=None, chain=None, ss=None):
    coords = np.asarray(coords, dtype=float).reshape(-1, 3)
    if labels is None:
        labels = [f"ALA {idx + 1}" for idx in range(len(coords))]
    return ChainBundle(
        x=list(coords[:, 0]),
        y=list(coords[:, 1]),
        z=list(coords[:, 2]),
        labels=labels,
        ss=ss or [],
        chain=chain,
    )


def test_parse_residue_label_with_chain_prefix():
    assert parse_residue_label("A:ALA 12", 0) == ("A", "ALA 12", 12)


def test_parse_residue_label_without_chain_uses_unknown():
    chain, label, res_no = parse_residue_label("GLY 7", 3)
    assert chain == config.UNKNOWN_CHAIN
    assert label == "GLY 7"
    assert res_no == 7


def test_parse_residue_label_falls_back_to_position():
    assert parse_residue_label("B:LYS", 4) == ("B", "LYS", 5)
    assert parse_residue_label("", 0) == (config.UNKNOWN_CHAIN, "", 1)


def test_bundle_chain_overrides_label_prefix():
    bundle = make_bundle([[0, 0, 0], [1, 0, 0]], labels=["X:ALA 1", "GLY 2"], chain="C")
    residues = build_residues([bundle])
    assert [residue.chain for residue in residues] == ["C", "C"]
    assert residues[0].label == "ALA 1"


def test_build_residues_concatenates_chains_in_order():
    first = make_bundle([[0, 0, 0], [1, 0, 0]], chain="A", ss=["H", " E "])
    second = make_bundle([[2, 0, 0]], labels=["CYS 40"], chain="B")
    residues = build_residues([first, second])
    assert [residue.index for residue in residues] == [0, 1, 2]
    assert [residue.chain for residue in residues] == ["A", "A", "B"]
    assert [residue.ss_code for residue in residues] == ["H", "E", ""]
    assert residues[2].res_no == 40
    assert residues[2].residue_name == "CYS"


def test_distance_matrix_symmetric_with_zero_diagonal():
    positions = np.random.default_rng(7).normal(scale=10.0, size=(40, 3))
    matrix = distance_matrix(positions)
    assert matrix.shape == (40, 40)
    assert np.allclose(matrix, matrix.T)
    assert np.all(np.diag(matrix) == 0.0)
    assert np.all(matrix >= 0.0)
    assert matrix[3, 17] == pytest.approx(np.linalg.norm(positions[3] - positions[17]))


def test_build_distance_matrix_known_distance():
    bundle = make_bundle([[0, 0, 0], [3, 4, 0]])
    residues, matrix = build_distance_matrix([bundle])
    assert len(residues) == 2
    assert matrix[0, 1] == pytest.approx(5.0)
    assert matrix[1, 0] == pytest.approx(5.0)


def test_build_distance_matrix_rejects_oversized_before_allocation(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("matrix must not be built")

    monkeypatch.setattr(matrix_module, "distance_matrix", fail)
    monkeypatch.setattr(matrix_module, "build_residues", fail)
    bundle = make_bundle(np.zeros((config.MAX_RESIDUES + 1, 3)))
    with pytest.raises(EngineError) as excinfo:
        build_distance_matrix([bundle])
    assert excinfo.value.code == "structure_too_large"
    assert excinfo.value.details["residues"] == config.MAX_RESIDUES + 1


def test_build_distance_matrix_accepts_limit():
    bundle = make_bundle(np.zeros((config.MAX_RESIDUES, 3)))
    residues, matrix = build_distance_matrix([bundle])
    assert len(residues) == config.MAX_RESIDUES
    assert matrix.shape == (config.MAX_RESIDUES, config.MAX_RESIDUES)


def test_misaligned_bundle_rejected():
    bundle = ChainBundle(x=[0.0, 1.0], y=[0.0], z=[0.0, 0.0], labels=["ALA 1", "ALA 2"])
    with pytest.raises(EngineError) as excinfo:
        build_distance_matrix([bundle])
    assert excinfo.value.code == "invalid_input"


@pytest.mark.parametrize(
    "n, expected",
    [(1, 20), (10, 20), (30, 20), (31, 19), (300, 2), (601, 1), (3000, 1), (0, 20)],
)
def test_suggest_scale(n, expected):
    assert suggest_scale(n) == expected


def test_chain_ranges_and_boundaries():
    bundles = [
        make_bundle(np.zeros((2, 3)), chain="A"),
        make_bundle(np.zeros((3, 3)), chain="B"),
        make_bundle(np.zeros((1, 3)), chain="A"),
    ]
    residues = build_residues(bundles)
    ranges = chain_ranges(residues)
    assert [(item.chain, item.start, item.end) for item in ranges] == [
        ("A", 0, 2),
        ("B", 2, 5),
        ("A", 5, 6),
    ]
    assert chain_boundaries(residues) == [2, 5]
    assert chain_ranges([]) == []
