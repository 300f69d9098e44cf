"""Adapters that drive a breaker around concrete calling conventions."""

from circuit_breaker_state.integrations.calls import AsyncCircuit, Circuit

__all__ = ["AsyncCircuit", "Circuit"]
