"""
Flow input model and adapters from upstream route payloads.

The engine only ever sees a `FlowInput`: an ordered list of recipients, a
parallel list of weights, the root identifier and an already formatted
balance. Route files are YAML or JSON documents in the upstream shape:

rootSplits: "0x..."
routes: ["0x...", "0x..."]
allocations: [70, 30]
totalBalance: "1.5"      # or balanceWei: 1500000000000000000

A list of such routes is also accepted; the first one is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple

import yaml

from .presentation import format_ether


@dataclass(frozen=True)
class FlowInput:
    recipients: Tuple[str, ...] = ()
    allocations: Tuple[float, ...] = ()
    root_identifier: str = ""
    total_balance_display: str = "0"

    @classmethod
    def create(
        cls,
        recipients: Optional[Sequence[str]],
        allocations: Optional[Sequence[float]],
        root_identifier: Optional[str] = None,
        total_balance_display: Optional[str] = None,
    ) -> "FlowInput":
        """Build an input, treating missing pieces as empty."""
        return cls(
            recipients=tuple(str(r) for r in (recipients if recipients is not None else ())),
            allocations=tuple(allocations if allocations is not None else ()),
            root_identifier=root_identifier or "",
            total_balance_display=total_balance_display if total_balance_display is not None else "0",
        )

    @classmethod
    def from_route(cls, route: Optional[Mapping[str, Any]], total_balance_display: Optional[str] = None) -> "FlowInput":
        """
        Adapt an upstream route record.

        Accepts both the upstream keys (`rootSplits`, `routes`) and the
        descriptive ones (`rootIdentifier`, `flowTargets`). A missing route
        yields an empty input.
        """
        if not route:
            return cls.create(None, None, None, total_balance_display)
        recipients = route.get("flowTargets", route.get("routes"))
        root = route.get("rootIdentifier", route.get("rootSplits"))
        return cls.create(recipients, route.get("allocations"), root, total_balance_display)

    @property
    def is_empty(self) -> bool:
        return not self.recipients and not self.allocations


def _balance_from_document(doc: Mapping[str, Any]) -> Optional[str]:
    if "totalBalance" in doc:
        return str(doc["totalBalance"])
    if "balanceWei" in doc:
        try:
            wei = int(doc["balanceWei"])
        except (TypeError, ValueError):
            raise ValueError(f"balanceWei must be an integer, got {doc['balanceWei']!r}") from None
        return format_ether(wei)
    return None


def input_from_document(doc: Any) -> FlowInput:
    """Turn a parsed route document (mapping or list of mappings) into a FlowInput."""
    if isinstance(doc, list):
        route = doc[0] if doc else None
    elif isinstance(doc, dict):
        route = doc
    elif doc is None:
        route = None
    else:
        raise ValueError("Route document must be a mapping or a list of mappings")
    if route is not None and not isinstance(route, dict):
        raise ValueError("Route entries must be mappings")
    if route:
        for key in ("flowTargets", "routes", "allocations"):
            if route.get(key) is not None and not isinstance(route[key], list):
                raise ValueError(f"Route field {key!r} must be a list")
    balance = _balance_from_document(route) if route else None
    return FlowInput.from_route(route, balance)


def load_route_file(path: str) -> FlowInput:
    """Read a YAML or JSON route file."""
    with open(path, "r", encoding="utf-8") as f:
        doc = yaml.safe_load(f)
    return input_from_document(doc)
