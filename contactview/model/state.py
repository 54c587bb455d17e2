"""Dataclasses for contact map state and render parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

import numpy as np

from contactview import config
from contactview.errors import EngineError


class EngineStatus(str, Enum):
    """Lifecycle of an engine instance."""

    IDLE = "idle"
    COMPUTING = "computing"
    READY = "ready"


class InteractionCategory(str, Enum):
    """Interaction categories produced by the classifier."""

    DISULFIDE = "Disulfide Bond"
    SALT_BRIDGE = "Salt Bridge"
    CATION_PI = "Cation-Pi Interaction"
    PI_STACKING = "Pi-Stacking"
    HYDROPHOBIC = "Hydrophobic Contact"
    CLOSE_CONTACT = "Close Contact"


FILTERABLE_CATEGORIES: FrozenSet[InteractionCategory] = frozenset(
    {
        InteractionCategory.SALT_BRIDGE,
        InteractionCategory.DISULFIDE,
        InteractionCategory.HYDROPHOBIC,
        InteractionCategory.PI_STACKING,
    }
)


@dataclass
class ChainBundle:
    """Per-chain coordinates as supplied by the coordinate provider.

    Attributes
    ----------
    x, y, z
        Cartesian coordinates, one entry per residue.
    labels
        Residue labels such as ``"ALA 12"`` or ``"A:ALA 12"``.
    ss
        Secondary structure codes, one per residue.
    chain
        Chain identifier. When None it is parsed from the labels.
    """

    x: List[float]
    y: List[float]
    z: List[float]
    labels: List[str]
    ss: List[str] = field(default_factory=list)
    chain: Optional[str] = None

    def __len__(self) -> int:
        return len(self.x)


@dataclass(frozen=True)
class ResidueRecord:
    """One residue of the flattened contact map axis.

    Attributes
    ----------
    index
        0-based position on the map axis.
    chain
        Chain identifier.
    res_no
        Residue sequence number.
    label
        Residue label without the chain prefix.
    ss_code
        Secondary structure code.
    position
        Cartesian coordinates.
    """

    index: int
    chain: str
    res_no: int
    label: str
    ss_code: str
    position: Tuple[float, float, float]

    @property
    def residue_name(self) -> str:
        parts = self.label.split()
        return parts[0].upper() if parts else ""

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "chain": self.chain,
            "res_no": self.res_no,
            "label": self.label,
            "residue_name": self.residue_name,
            "ss_code": self.ss_code,
        }


@dataclass(frozen=True)
class ChainRange:
    """Contiguous span of residues sharing a chain id (``end`` exclusive)."""

    chain: str
    start: int
    end: int


@dataclass(frozen=True)
class Thresholds:
    """Distance thresholds for the ShowAll colour buckets."""

    contact: float = config.DEFAULT_CONTACT_THRESHOLD
    proximal: float = config.DEFAULT_PROXIMAL_THRESHOLD

    def __post_init__(self) -> None:
        lo, hi = config.CONTACT_RANGE
        if not lo <= self.contact <= hi:
            raise EngineError(
                "invalid_input",
                f"contact threshold must be within [{lo}, {hi}]",
                self.contact,
            )
        lo, hi = config.PROXIMAL_RANGE
        if not lo <= self.proximal <= hi:
            raise EngineError(
                "invalid_input",
                f"proximal threshold must be within [{lo}, {hi}]",
                self.proximal,
            )


@dataclass(frozen=True)
class ShowAll:
    """Filter variant drawing every pair within the proximal threshold."""

    def to_dict(self) -> dict:
        return {"mode": "all"}


@dataclass(frozen=True)
class CategorySet:
    """Filter variant drawing only pairs of the enabled categories."""

    categories: FrozenSet[InteractionCategory]

    def __post_init__(self) -> None:
        if not self.categories:
            raise EngineError("invalid_input", "category filter must not be empty")
        unsupported = set(self.categories) - FILTERABLE_CATEGORIES
        if unsupported:
            raise EngineError(
                "invalid_input",
                "category filter contains unsupported categories",
                sorted(category.value for category in unsupported),
            )

    @classmethod
    def of(cls, categories: Iterable[Union[str, InteractionCategory]]) -> "CategorySet":
        """Build a category filter from category values or enum members.

        Parameters
        ----------
        categories
            Category names such as ``"Salt Bridge"``.

        Returns
        -------
        CategorySet
            Validated filter.

        Raises
        ------
        EngineError
            If a name is unknown, unsupported or the set is empty.
        """

        members = set()
        for item in categories:
            try:
                members.add(InteractionCategory(item))
            except ValueError as exc:
                raise EngineError(
                    "invalid_input", f"Unknown interaction category '{item}'"
                ) from exc
        return cls(frozenset(members))

    def to_dict(self) -> dict:
        return {
            "mode": "categories",
            "categories": sorted(category.value for category in self.categories),
        }


FilterState = Union[ShowAll, CategorySet]


@dataclass(frozen=True)
class RenderParams:
    """Immutable configuration of one heatmap render."""

    scale: int = 1
    thresholds: Thresholds = field(default_factory=Thresholds)
    filters: FilterState = field(default_factory=ShowAll)
    show_grid: bool = True
    show_intra_chain: bool = True
    theme: str = config.DEFAULT_THEME

    def __post_init__(self) -> None:
        if not config.MIN_SCALE <= int(self.scale) <= config.MAX_SCALE:
            raise EngineError(
                "invalid_input",
                f"scale must be within [{config.MIN_SCALE}, {config.MAX_SCALE}]",
                self.scale,
            )
        if self.theme not in config.THEMES:
            raise EngineError("invalid_input", f"Unknown theme '{self.theme}'")


@dataclass(frozen=True)
class ViewportRect:
    """Visible region of the main canvas in minimap pixels."""

    x: float
    y: float
    w: float
    h: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class ScrollState:
    """Scroll offsets and client size of the scrollable main container."""

    scroll_left: float = 0.0
    scroll_top: float = 0.0
    client_width: float = 0.0
    client_height: float = 0.0


@dataclass(frozen=True)
class Interaction:
    """Classifier result."""

    category: InteractionCategory
    color: str

    def to_dict(self) -> dict:
        return {"category": self.category.value, "color": self.color}


@dataclass(frozen=True)
class HoverInfo:
    """Resolved residue pair under the pointer."""

    row: int
    col: int
    residue_a: ResidueRecord
    residue_b: ResidueRecord
    distance: float
    interaction: Optional[Interaction]
    label: str

    def to_dict(self) -> dict:
        return {
            "row": self.row,
            "col": self.col,
            "residue_a": self.residue_a.to_dict(),
            "residue_b": self.residue_b.to_dict(),
            "distance": self.distance,
            "interaction": self.interaction.to_dict() if self.interaction else None,
            "label": self.label,
        }


@dataclass
class EngineState:
    """Mutable engine state guarded by the engine lock.

    Attributes
    ----------
    status
        Lifecycle status.
    generation
        Id of the most recent load request.
    residues
        Residue records of the current structure.
    matrix
        Distance matrix of the current structure.
    chain_ranges
        Chain spans of the current structure.
    params
        Committed render parameters.
    pending_thresholds
        Thresholds waiting for the debounced commit.
    scroll
        Last reported scroll state of the main container.
    last_error
        Error payload of the last failed load.
    """

    status: EngineStatus = EngineStatus.IDLE
    generation: int = 0
    residues: List[ResidueRecord] = field(default_factory=list)
    matrix: Optional[np.ndarray] = None
    chain_ranges: List[ChainRange] = field(default_factory=list)
    params: RenderParams = field(default_factory=RenderParams)
    pending_thresholds: Optional[Thresholds] = None
    scroll: ScrollState = field(default_factory=ScrollState)
    last_error: Optional[dict] = None
