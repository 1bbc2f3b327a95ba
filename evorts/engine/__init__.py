"""Engine layer: tick scheduler and simulation assembly."""

from evorts.engine.scheduler import PerformanceMetrics, TickScheduler
from evorts.engine.simulation import Simulation

__all__ = ["PerformanceMetrics", "Simulation", "TickScheduler"]
