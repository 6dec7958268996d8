"""Extraction strategy registry.

Strategies are auto-discovered from modules in this package. Any
`ListingStrategy` or `DetailStrategy` subclass with a non-empty `name`
attribute is registered; callers get instances ordered by `priority`.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from typing import Any

from .base import DetailStrategy, FetchedPage, ListingStrategy

__all__ = [
    "DetailStrategy",
    "FetchedPage",
    "ListingStrategy",
    "get_listing_strategies",
    "get_detail_strategies",
    "get_strategy",
    "list_strategies",
]

logger = logging.getLogger(__name__)

StrategyClass = type[ListingStrategy] | type[DetailStrategy]


def _discover_strategies() -> dict[str, StrategyClass]:
    discovered: dict[str, StrategyClass] = {}
    failures: dict[str, Exception] = {}

    # Walk sibling modules under this package (noon_minutes.extraction.*).
    for module_info in pkgutil.iter_modules(__path__):  # type: ignore[name-defined]
        if module_info.ispkg:
            continue
        module_name = module_info.name
        if module_name.startswith("_") or module_name in {"base", "browser_pool"}:
            continue

        full_name = f"{__name__}.{module_name}"
        try:
            module = importlib.import_module(full_name)
        except Exception as exc:  # pragma: no cover - depends on optional modules
            failures[full_name] = exc
            continue

        for _, obj in inspect.getmembers(module, inspect.isclass):
            if obj in (ListingStrategy, DetailStrategy):
                continue
            if not issubclass(obj, (ListingStrategy, DetailStrategy)) or inspect.isabstract(obj):
                continue
            strategy_name = getattr(obj, "name", None)
            if not isinstance(strategy_name, str) or not strategy_name.strip():
                continue

            if strategy_name in discovered and discovered[strategy_name] is not obj:
                logger.warning(
                    "Duplicate strategy name '%s': %s.%s and %s.%s (keeping first)",
                    strategy_name,
                    discovered[strategy_name].__module__,
                    discovered[strategy_name].__name__,
                    obj.__module__,
                    obj.__name__,
                )
                continue
            discovered[strategy_name] = obj

    for mod, exc in failures.items():
        logger.warning("Failed to import strategy module %s: %r", mod, exc)

    return dict(sorted(discovered.items(), key=lambda kv: (kv[1].priority, kv[0])))


STRATEGIES: dict[str, StrategyClass] = _discover_strategies()


def _instantiate(cls: StrategyClass, overrides: dict[str, dict[str, Any]] | None):
    kwargs = (overrides or {}).get(cls.name, {})
    return cls(**kwargs)


def get_listing_strategies(
    include_rendered: bool = True,
    overrides: dict[str, dict[str, Any]] | None = None,
) -> list[ListingStrategy]:
    """Listing strategies in priority order.

    `overrides` maps a strategy name to constructor keyword arguments.
    """
    return [
        _instantiate(cls, overrides)
        for name, cls in STRATEGIES.items()
        if issubclass(cls, ListingStrategy) and (include_rendered or name != "rendered")
    ]


def get_detail_strategies(overrides: dict[str, dict[str, Any]] | None = None) -> list[DetailStrategy]:
    """Detail strategies in priority order."""
    return [
        _instantiate(cls, overrides)
        for cls in STRATEGIES.values()
        if issubclass(cls, DetailStrategy)
    ]


def get_strategy(name: str) -> ListingStrategy | DetailStrategy:
    """Get a strategy instance by name."""
    if name not in STRATEGIES:
        available = ", ".join(STRATEGIES.keys())
        raise ValueError(f"Unknown strategy '{name}'. Available: {available}")
    return STRATEGIES[name]()


def list_strategies() -> list[str]:
    """List all strategy names, listing and detail, in priority order."""
    return list(STRATEGIES.keys())
