"""Repair strategies and the attempt loop that drives them."""
from mender.repair.loop import RepairLoop, build_default_strategies, build_repair_loop
from mender.repair.strategies import (
    HeuristicStrategy,
    ModelRepairStrategy,
    PatchStrategy,
    RepairContext,
    SignatureRule,
)

__all__ = [
    "RepairLoop",
    "build_default_strategies",
    "build_repair_loop",
    "HeuristicStrategy",
    "ModelRepairStrategy",
    "PatchStrategy",
    "RepairContext",
    "SignatureRule",
]
