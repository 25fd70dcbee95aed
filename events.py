"""
Analytics event dispatch for the mortgage strategy simulator.

The engine never calls into this module. Front ends report input changes
and best-strategy changes here; a sink that fails or is missing never
affects a simulation.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Tuple

from loguru import logger

import config as cfg
from simulation import SimulationConfig, SimulationResult

EVENT_CATEGORY = "Mortgage Calculator"


# ─── Sinks ───────────────────────────────────────────────────────────

class EventSink(Protocol):
    def track(self, event_name: str, **params: Any) -> None:
        ...


class NullEventSink:
    def track(self, event_name: str, **params: Any) -> None:
        return None


class LoguruEventSink:
    """Writes every event to the log with its parameters as context."""

    def track(self, event_name: str, **params: Any) -> None:
        logger.info("analytics_event", event=event_name, **params)


class RecordingEventSink:
    """Keeps events in memory, in order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def track(self, event_name: str, **params: Any) -> None:
        self.events.append((event_name, params))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


def dispatch(sink: Optional[EventSink], event_name: str, **params: Any) -> None:
    """Fire-and-forget: a broken sink is logged, never raised."""
    if sink is None:
        return
    params.setdefault("event_category", EVENT_CATEGORY)
    try:
        sink.track(event_name, **params)
    except Exception as exc:
        logger.warning("analytics_sink_failed", event=event_name, error=str(exc))


# ─── Event helpers ───────────────────────────────────────────────────

def track_input_change(sink: Optional[EventSink], field: str, value: Any) -> None:
    dispatch(sink, "input_changed", field_name=field, field_value=value,
             event_label=f"{field}: {value}")


def track_rental_toggle(sink: Optional[EventSink], enabled: bool) -> None:
    state = "enabled" if enabled else "disabled"
    dispatch(sink, "rental_comparison_toggled", rental_enabled=enabled,
             event_label=f"Rental comparison {state}")


def track_strategy_selected(sink: Optional[EventSink], strategy: str) -> None:
    dispatch(sink, "strategy_selected", strategy_name=strategy,
             event_label=f"Strategy: {strategy}")


def track_chart_interaction(sink: Optional[EventSink], chart_type: str) -> None:
    dispatch(sink, "chart_interacted", chart_type=chart_type,
             event_label=f"Chart: {chart_type}")


# ─── Change tracking ─────────────────────────────────────────────────

class StrategyTracker:
    """Diffs successive runs and reports what changed.

    Holds only the last config and best strategy name it was shown;
    the simulation itself stays stateless.
    """

    def __init__(
        self,
        sink: Optional[EventSink],
        previous_config: Optional[SimulationConfig] = None,
        previous_best: Optional[str] = None,
    ) -> None:
        self.sink = sink
        self.previous_config = previous_config
        self.previous_best = previous_best

    def observe(self, config: SimulationConfig, result: SimulationResult) -> None:
        if self.previous_config is not None:
            for name in cfg.NUMERIC_FIELDS:
                new = getattr(config, name)
                if new != getattr(self.previous_config, name):
                    track_input_change(self.sink, name, new)
            if config.enable_rental_comparison != self.previous_config.enable_rental_comparison:
                track_rental_toggle(self.sink, config.enable_rental_comparison)

        best = result.best_strategy.name
        if best != self.previous_best:
            track_strategy_selected(self.sink, best)

        self.previous_config = config
        self.previous_best = best
