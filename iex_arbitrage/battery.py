"""
Battery energy storage system (BESS) configuration for arbitrage economics.
"""

from dataclasses import dataclass

from iex_arbitrage.constants import BLOCKS_PER_HOUR
from iex_arbitrage.exceptions import InvalidConfigurationError


@dataclass
class BessConfig:
    """
    A grid-scale battery energy storage system and its costs.

    Attributes:
        capacity_mw: Power rating in MW
        duration_hours: Hours of storage at rated power (e.g. 2 or 4)
        cycles_per_day: Full charge/discharge cycles per day
        efficiency: Round-trip efficiency (0.0 to 1.0)
        depth_of_discharge: Usable fraction of capacity (0.0 to 1.0)
        degradation_rate: Capacity loss in % per year
        capex_per_kwh: Capital cost in Rs per kWh of storage
        opex_per_mwh: Operating cost in Rs per MWh cycled
    """
    capacity_mw: float = 50.0
    duration_hours: float = 2.0
    cycles_per_day: int = 1
    efficiency: float = 0.90
    depth_of_discharge: float = 0.9
    degradation_rate: float = 2.5
    capex_per_kwh: float = 25000.0
    opex_per_mwh: float = 500.0

    def __post_init__(self):
        """Validate battery parameters."""
        if self.capacity_mw <= 0:
            raise InvalidConfigurationError("Capacity must be positive")
        if self.duration_hours <= 0:
            raise InvalidConfigurationError("Duration must be positive")
        if self.cycles_per_day < 1:
            raise InvalidConfigurationError("At least one cycle per day is required")
        if not 0 < self.efficiency <= 1:
            raise InvalidConfigurationError("Efficiency must be between 0 and 1")
        if not 0 < self.depth_of_discharge <= 1:
            raise InvalidConfigurationError("Depth of discharge must be between 0 and 1")
        if self.capex_per_kwh < 0 or self.opex_per_mwh < 0:
            raise InvalidConfigurationError("Costs cannot be negative")

    @property
    def energy_capacity_mwh(self) -> float:
        return self.capacity_mw * self.duration_hours

    @property
    def blocks_per_cycle(self) -> int:
        """15-minute blocks needed to charge (or discharge) each day."""
        return int(self.duration_hours * BLOCKS_PER_HOUR * self.cycles_per_day)

    @property
    def daily_throughput_mwh(self) -> float:
        """Usable energy cycled per day."""
        return self.capacity_mw * self.duration_hours * self.depth_of_discharge * self.cycles_per_day

    @property
    def total_capex(self) -> float:
        return self.capacity_mw * 1000 * self.duration_hours * self.capex_per_kwh

    def __repr__(self) -> str:
        return (
            f"BessConfig(capacity={self.capacity_mw}MW, "
            f"duration={self.duration_hours}h, "
            f"efficiency={self.efficiency:.0%}, "
            f"DoD={self.depth_of_discharge:.0%})"
        )
