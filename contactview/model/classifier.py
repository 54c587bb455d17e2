"""Residue pair interaction classification."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from contactview.model.state import Interaction, InteractionCategory

MAX_INTERACTION_DISTANCE = 8.0
DISULFIDE_DISTANCE = 3.0
HYDROPHOBIC_DISTANCE = 5.0
CLOSE_CONTACT_DISTANCE = 4.0

POSITIVE = frozenset({"ARG", "LYS", "HIS"})
NEGATIVE = frozenset({"ASP", "GLU"})
AROMATIC = frozenset({"PHE", "TYR", "TRP", "HIS"})
HYDROPHOBIC = frozenset(
    {"ALA", "VAL", "ILE", "LEU", "MET", "PHE", "TYR", "TRP", "CYS", "PRO"}
)

CATEGORY_COLORS: Dict[InteractionCategory, str] = {
    InteractionCategory.DISULFIDE: "#eab308",
    InteractionCategory.SALT_BRIDGE: "#ef4444",
    InteractionCategory.CATION_PI: "#6366f1",
    InteractionCategory.PI_STACKING: "#a855f7",
    InteractionCategory.HYDROPHOBIC: "#22c55e",
    InteractionCategory.CLOSE_CONTACT: "#737373",
}

# Integer codes used by classify_matrix, in rule order. 0 means no interaction.
CATEGORY_CODES: List[InteractionCategory] = [
    InteractionCategory.DISULFIDE,
    InteractionCategory.SALT_BRIDGE,
    InteractionCategory.CATION_PI,
    InteractionCategory.PI_STACKING,
    InteractionCategory.HYDROPHOBIC,
    InteractionCategory.CLOSE_CONTACT,
]
NO_INTERACTION = 0


def residue_name(label: str) -> str:
    """Return the upper-cased first whitespace token of a residue label."""

    parts = str(label or "").split()
    return parts[0].upper() if parts else ""


def category_code(category: InteractionCategory) -> int:
    return CATEGORY_CODES.index(category) + 1


def classify_interaction(label_a: str, label_b: str, distance: float) -> Optional[Interaction]:
    """Classify a residue pair.

    Rules are evaluated in order and the first match wins: distance cutoff,
    disulfide, salt bridge, cation-pi, pi-stacking, hydrophobic, close contact.

    Parameters
    ----------
    label_a, label_b
        Residue labels; only the first token (three-letter code) is used.
    distance
        Pair distance in angstrom.

    Returns
    -------
    Interaction or None
        Category and display colour, or None when no rule matches.
    """

    if not distance <= MAX_INTERACTION_DISTANCE:
        return None
    res_a = residue_name(label_a)
    res_b = residue_name(label_b)

    if res_a == "CYS" and res_b == "CYS" and distance < DISULFIDE_DISTANCE:
        return _interaction(InteractionCategory.DISULFIDE)

    pos_a, pos_b = res_a in POSITIVE, res_b in POSITIVE
    neg_a, neg_b = res_a in NEGATIVE, res_b in NEGATIVE
    if (pos_a and neg_b) or (neg_a and pos_b):
        return _interaction(InteractionCategory.SALT_BRIDGE)

    aro_a, aro_b = res_a in AROMATIC, res_b in AROMATIC
    if (pos_a and aro_b) or (aro_a and pos_b):
        return _interaction(InteractionCategory.CATION_PI)
    if aro_a and aro_b:
        return _interaction(InteractionCategory.PI_STACKING)

    if res_a in HYDROPHOBIC and res_b in HYDROPHOBIC and distance < HYDROPHOBIC_DISTANCE:
        return _interaction(InteractionCategory.HYDROPHOBIC)

    if distance < CLOSE_CONTACT_DISTANCE:
        return _interaction(InteractionCategory.CLOSE_CONTACT)
    return None


def _interaction(category: InteractionCategory) -> Interaction:
    return Interaction(category=category, color=CATEGORY_COLORS[category])


def classify_matrix(names: Sequence[str], matrix: np.ndarray) -> np.ndarray:
    """Classify every residue pair of a distance matrix.

    Parameters
    ----------
    names
        Residue names (three-letter codes) along the matrix axis.
    matrix
        ``(N, N)`` distance matrix.

    Returns
    -------
    numpy.ndarray
        ``(N, N)`` int8 array of category codes (index into ``CATEGORY_CODES``
        plus one), ``NO_INTERACTION`` where no rule matches.
    """

    upper = [str(name).upper() for name in names]
    cys = np.array([name == "CYS" for name in upper], dtype=bool)
    pos = np.array([name in POSITIVE for name in upper], dtype=bool)
    neg = np.array([name in NEGATIVE for name in upper], dtype=bool)
    aro = np.array([name in AROMATIC for name in upper], dtype=bool)
    hyd = np.array([name in HYDROPHOBIC for name in upper], dtype=bool)

    within = matrix <= MAX_INTERACTION_DISTANCE
    conditions = [
        within & np.outer(cys, cys) & (matrix < DISULFIDE_DISTANCE),
        within & (np.outer(pos, neg) | np.outer(neg, pos)),
        within & (np.outer(pos, aro) | np.outer(aro, pos)),
        within & np.outer(aro, aro),
        within & np.outer(hyd, hyd) & (matrix < HYDROPHOBIC_DISTANCE),
        within & (matrix < CLOSE_CONTACT_DISTANCE),
    ]
    choices = [category_code(category) for category in CATEGORY_CODES]
    return np.select(conditions, choices, default=NO_INTERACTION).astype(np.int8)
