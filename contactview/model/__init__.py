"""Model package exports."""

from contactview.model.state import (
    CategorySet,
    ChainBundle,
    EngineStatus,
    InteractionCategory,
    RenderParams,
    ResidueRecord,
    ScrollState,
    ShowAll,
    Thresholds,
)

__all__ = [
    "CategorySet",
    "ChainBundle",
    "EngineStatus",
    "InteractionCategory",
    "RenderParams",
    "ResidueRecord",
    "ScrollState",
    "ShowAll",
    "Thresholds",
]
