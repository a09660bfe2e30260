"""
FuelEU Maritime compliance balance calculator.

Turns measured ship performance into a signed compliance balance:
- Energy in scope (MJ) from fuel consumed and a fixed calorific value
- Compliance balance (surplus/deficit vs target intensity)
- Compliance verdict with a tolerance band above the target

Reference: EU Regulation 2023/1805 (FuelEU Maritime)
Target: 89.3368 gCO2eq/MJ (2025, 2% below the 91.16 reference)
"""

import math
from dataclasses import dataclass, field
from typing import Dict


# =============================================================================
# Regulatory defaults
# =============================================================================

# GHG intensity target for 2025 (gCO2eq/MJ)
TARGET_INTENSITY_2025 = 89.3368

# Reference intensity used when no baseline route is flagged (gCO2eq/MJ)
REFERENCE_GHG = 91.16

# Approximate lower calorific value (MJ per tonne of fuel)
LCV_MJ_PER_TON = 41000.0

# Ships up to 2% above target are still reported compliant
COMPLIANCE_THRESHOLD = 0.02


# =============================================================================
# Parameters & results
# =============================================================================

@dataclass(frozen=True)
class ComplianceParameters:
    """Regulatory constants, passed in rather than read from module state."""
    target_intensity: float = TARGET_INTENSITY_2025
    lcv_mj_per_ton: float = LCV_MJ_PER_TON
    compliance_threshold: float = COMPLIANCE_THRESHOLD
    default_baseline_intensity: float = REFERENCE_GHG
    target_overrides: Dict[int, float] = field(default_factory=dict)

    def target_for_year(self, year: int) -> float:
        """Target intensity for a reporting year (override or default)."""
        return self.target_overrides.get(year, self.target_intensity)


@dataclass(frozen=True)
class BalanceResult:
    """Output of a single balance calculation (full precision)."""
    energy_in_scope_mj: float
    cb: float  # gCO2eq, positive=surplus
    is_compliant: bool


# =============================================================================
# Calculator
# =============================================================================

class BalanceCalculator:
    """Pure compliance balance calculator. Holds no state besides parameters."""

    def __init__(self, params: ComplianceParameters = None):
        self.params = params or ComplianceParameters()

    def calculate_balance(
        self,
        target_intensity: float,
        actual_intensity: float,
        fuel_consumed_t: float,
    ) -> BalanceResult:
        """
        Calculate the compliance balance for one ship-year.

        Args:
            target_intensity: Regulatory target (gCO2eq/MJ)
            actual_intensity: Attained GHG intensity (gCO2eq/MJ)
            fuel_consumed_t: Fuel consumed in tonnes

        Returns:
            BalanceResult; cb is positive when actual is below target
        """
        # Energy in scope: tonnes * MJ/t
        energy_in_scope = fuel_consumed_t * self.params.lcv_mj_per_ton

        # CB = (target - actual) * energy
        cb = (target_intensity - actual_intensity) * energy_in_scope

        max_allowed = target_intensity * (1 + self.params.compliance_threshold)
        is_compliant = actual_intensity <= max_allowed

        return BalanceResult(
            energy_in_scope_mj=energy_in_scope,
            cb=cb,
            is_compliant=is_compliant,
        )

    def calculate_for_year(
        self, year: int, actual_intensity: float, fuel_consumed_t: float
    ) -> BalanceResult:
        """Calculate against the configured target for ``year``."""
        return self.calculate_balance(
            self.params.target_for_year(year), actual_intensity, fuel_consumed_t
        )

    @staticmethod
    def percent_diff(intensity: float, baseline_intensity: float) -> float:
        """Percentage deviation of ``intensity`` from ``baseline_intensity``."""
        return (intensity / baseline_intensity - 1) * 100


def is_finite_number(value) -> bool:
    """True for int/float values that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
