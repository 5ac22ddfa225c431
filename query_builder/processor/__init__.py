"""Stateful front of the engine: selection store and its snapshots."""

from .selection_store import SelectionStore, Snapshot

__all__ = ["SelectionStore", "Snapshot"]
