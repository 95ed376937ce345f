"""
POS Stocking Engine — Distribution Selector
=============================================
Consulted once at product-creation time to decide where the initial
stock goes. The catalogue is fixed and ordered, addressable by the
1-based index a product-creation screen shows to the operator.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from core.errors import ErrorKind, PosError
from engines.stocking.policies import (
    CATALOGUE,
    DistributionPolicy,
    InventoryDistribution,
)

logger = logging.getLogger("pos.stocking")


class DistributionSelector:
    """Holds the current distribution choice for one product-creation flow."""

    def __init__(self, catalogue: Tuple[DistributionPolicy, ...] = CATALOGUE):
        self._catalogue = tuple(catalogue)
        self._current: Optional[DistributionPolicy] = None

    @property
    def catalogue(self) -> Tuple[DistributionPolicy, ...]:
        return self._catalogue

    @property
    def current(self) -> Optional[DistributionPolicy]:
        return self._current

    def is_valid_choice(self, index: int) -> bool:
        return isinstance(index, int) and 1 <= index <= len(self._catalogue)

    def policy_at(self, index: int) -> Optional[DistributionPolicy]:
        """1-based lookup. None when out of range."""
        if not self.is_valid_choice(index):
            return None
        return self._catalogue[index - 1]

    def select(self, index: int) -> DistributionPolicy:
        """
        Choose a policy by 1-based index.

        Raises:
            PosError(INVALID_ARGUMENT): index out of range
        """
        policy = self.policy_at(index)
        if policy is None:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Invalid distribution policy index: {index}. "
                f"Choose 1 to {len(self._catalogue)}.",
                code="INVALID_DISTRIBUTION_INDEX",
            )
        self._current = policy
        logger.debug(f"Distribution policy selected: {policy.display_name}")
        return policy

    def use(self, policy: DistributionPolicy) -> None:
        if not isinstance(policy, DistributionPolicy):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Expected DistributionPolicy, got {type(policy).__name__}.",
            )
        self._current = policy

    def configure(self, total_quantity: int) -> InventoryDistribution:
        """
        Split total_quantity with the current policy.

        Raises:
            PosError(INVALID_STATE): no policy selected yet
        """
        if self._current is None:
            raise PosError(
                ErrorKind.INVALID_STATE,
                "No distribution policy selected.",
                code="NO_DISTRIBUTION_POLICY",
            )
        return self._current.configure(total_quantity)

    def options(self) -> List[dict]:
        """Rows for a presentation collaborator to list the choices."""
        return [
            {
                "index": i,
                "display_name": policy.display_name,
                "description": policy.description,
            }
            for i, policy in enumerate(self._catalogue, start=1)
        ]
