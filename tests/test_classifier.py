import itertools

import numpy as np
import pytest

from contactview.model.classifier import (
    CATEGORY_CODES,
    CATEGORY_COLORS,
    NO_INTERACTION,
    category_code,
    classify_interaction,
    classify_matrix,
)
from contactview.model.state import InteractionCategory


def category_of(label_a, label_b, distance):
    result = classify_interaction(label_a, label_b, distance)
    return result.category if result else None


def test_disulfide_bond():
    result = classify_interaction("CYS 10", "CYS 55", 2.5)
    assert result.category is InteractionCategory.DISULFIDE
    assert result.color == "#eab308"


def test_cysteine_pair_beyond_disulfide_is_hydrophobic():
    assert category_of("CYS 10", "CYS 55", 3.5) is InteractionCategory.HYDROPHOBIC


@pytest.mark.parametrize("pair", [("ARG 1", "ASP 2"), ("GLU 1", "LYS 2"), ("HIS 1", "ASP 2")])
def test_salt_bridge_either_order(pair):
    assert category_of(pair[0], pair[1], 3.0) is InteractionCategory.SALT_BRIDGE
    assert category_of(pair[1], pair[0], 3.0) is InteractionCategory.SALT_BRIDGE


def test_cation_pi_wins_over_pi_stacking_for_histidine():
    assert category_of("LYS 1", "PHE 2", 6.0) is InteractionCategory.CATION_PI
    assert category_of("HIS 1", "PHE 2", 6.0) is InteractionCategory.CATION_PI


def test_pi_stacking():
    assert category_of("PHE 1", "TYR 2", 7.5) is InteractionCategory.PI_STACKING


def test_hydrophobic_requires_short_distance():
    assert category_of("LEU 1", "VAL 2", 4.5) is InteractionCategory.HYDROPHOBIC
    assert category_of("LEU 1", "VAL 2", 5.5) is None


def test_close_contact():
    assert category_of("SER 1", "THR 2", 3.5) is InteractionCategory.CLOSE_CONTACT
    assert category_of("SER 1", "THR 2", 4.5) is None


def test_cutoff_is_inclusive():
    assert category_of("ARG 1", "ASP 2", 8.0) is InteractionCategory.SALT_BRIDGE
    assert category_of("ARG 1", "ASP 2", 8.01) is None
    assert category_of("CYS 1", "CYS 2", 9.0) is None
    assert category_of("ARG 1", "ASP 2", float("nan")) is None


def test_labels_use_first_token_case_insensitive():
    assert category_of("arg", "Asp 12A", 3.0) is InteractionCategory.SALT_BRIDGE
    assert category_of("", "", 1.0) is InteractionCategory.CLOSE_CONTACT


def test_category_codes_follow_rule_order():
    assert [category_code(category) for category in CATEGORY_CODES] == [1, 2, 3, 4, 5, 6]
    assert set(CATEGORY_COLORS) == set(InteractionCategory)


def test_classify_matrix_agrees_with_scalar_rules():
    names = ["CYS", "CYS", "ARG", "ASP", "HIS", "PHE", "TYR", "LEU", "VAL", "SER", "GLY"]
    rng = np.random.default_rng(3)
    values = rng.choice([1.0, 2.5, 3.0, 3.5, 4.5, 5.0, 6.0, 8.0, 8.5, 11.0], size=(len(names),) * 2)
    matrix = np.triu(values, k=1)
    matrix = matrix + matrix.T

    codes = classify_matrix(names, matrix)

    assert codes.dtype == np.int8
    for i, j in itertools.product(range(len(names)), repeat=2):
        expected = classify_interaction(names[i], names[j], matrix[i, j])
        expected_code = category_code(expected.category) if expected else NO_INTERACTION
        assert codes[i, j] == expected_code, (names[i], names[j], matrix[i, j])
