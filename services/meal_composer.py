"""
Meal Composer - picks a concrete tray (entree, sides, dessert or beverage)
that fits a calorie target.

Composition is a bounded randomized greedy search:
- a target at or below zero only gets the zero-calorie side, if any
- a small target (a "quick snack") gets the cheapest side that fits
- otherwise up to MAX_ATTEMPTS random trays are tried; an attempt succeeds
  when it uses up the whole target, or early when the entree alone leaves
  no more than a snack's worth of calories

Randomness goes through a RecipeSelector so callers (and tests) control it.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from domain.enums import MealTime

logger = logging.getLogger("trayprep.composer")

QUICK_SNACK_THRESHOLD = 100
MAX_ATTEMPTS = 5
EXTRA_SIDE_PICKS = 2


class RecipeSelector(Protocol):
    """Picks one of N candidate recipes"""

    def choose(self, candidates: Sequence[Any]) -> Optional[Any]:
        ...


class RandomRecipeSelector:
    """Uniform random choice; an empty pool yields no candidate"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def choose(self, candidates: Sequence[Any]) -> Optional[Any]:
        if not candidates:
            return None
        return self.rng.choice(list(candidates))


@dataclass(frozen=True)
class MealPools:
    """Available recipes per category, each sorted by calories descending"""

    entrees: Sequence[Any] = ()
    sides: Sequence[Any] = ()
    desserts: Sequence[Any] = ()
    beverages: Sequence[Any] = ()


@dataclass(frozen=True)
class CompositionState:
    """
    Tray being built during one attempt.

    `extra` holds the single dessert-or-beverage item. Every step returns a
    new state, so nothing leaks from one attempt into the next.
    """

    remaining: int
    entree: Optional[Any] = None
    extra: Optional[Any] = None
    sides: Tuple[Any, ...] = ()

    def with_entree(self, recipe) -> "CompositionState":
        return replace(self, entree=recipe, remaining=self.remaining - recipe.calories)

    def with_side(self, recipe) -> "CompositionState":
        return replace(
            self, sides=self.sides + (recipe,), remaining=self.remaining - recipe.calories
        )

    def with_extra(self, recipe) -> "CompositionState":
        # A new extra replaces the previous one and gives its calories back.
        refund = self.extra.calories if self.extra is not None else 0
        return replace(
            self, extra=recipe, remaining=self.remaining + refund - recipe.calories
        )

    def extra_fits(self, recipe) -> bool:
        refund = self.extra.calories if self.extra is not None else 0
        return self.remaining + refund >= recipe.calories

    def recipes(self, fallback=None) -> List[Any]:
        items = [self.entree, self.extra, *self.sides]
        if fallback is not None and not any(item is fallback for item in items):
            items.append(fallback)
        return [item for item in items if item is not None]


def zero_calorie_side(sides: Sequence[Any]) -> Optional[Any]:
    """First side with no calories, offered when nothing else fits"""
    return next((side for side in sides if side.calories == 0), None)


def cheapest_side(sides: Sequence[Any], limit: int) -> Optional[Any]:
    """Lowest-calorie side with 0 < calories <= limit"""
    # Pools are sorted by calories descending, so scan from the end.
    for side in reversed(list(sides)):
        if 0 < side.calories <= limit:
            return side
    return None


class MealComposer:
    """Builds one tray for one patient and meal time"""

    def __init__(self, selector: Optional[RecipeSelector] = None):
        self.selector: RecipeSelector = selector or RandomRecipeSelector()

    def compose(self, meal_time: MealTime, target: int, pools: MealPools) -> List[Any]:
        """
        Select recipes whose calories add up to no more than `target`.

        Returns:
            The tray's recipes, or an empty list when no tray could be built
            within MAX_ATTEMPTS.
        """
        fallback = zero_calorie_side(pools.sides)

        if target <= 0:
            return [fallback] if fallback is not None else []

        if target <= QUICK_SNACK_THRESHOLD:
            snack = cheapest_side(pools.sides, target)
            return [item for item in (snack, fallback) if item is not None]

        for attempt in range(1, MAX_ATTEMPTS + 1):
            meal = self._attempt(meal_time, target, pools, fallback)
            if meal is not None:
                logger.debug(
                    "Composed %s tray of %d items on attempt %d (target=%d)",
                    meal_time.value,
                    len(meal),
                    attempt,
                    target,
                )
                return meal

        logger.debug(
            "No %s tray within %d kcal after %d attempts",
            meal_time.value,
            target,
            MAX_ATTEMPTS,
        )
        return []

    def _attempt(
        self, meal_time: MealTime, target: int, pools: MealPools, fallback
    ) -> Optional[List[Any]]:
        state = CompositionState(remaining=target)

        entree = self.selector.choose(pools.entrees)
        if entree is not None and entree.calories < state.remaining:
            state = state.with_entree(entree)

            # Close enough: top the entree up with a small side and stop.
            if state.remaining <= QUICK_SNACK_THRESHOLD:
                # Bounded by what is left after the entree, not the full target.
                side = cheapest_side(pools.sides, state.remaining)
                if side is not None:
                    state = state.with_side(side)
                return state.recipes(fallback)

        side = self.selector.choose(pools.sides)
        if side is not None and state.remaining >= side.calories:
            state = state.with_side(side)

        if meal_time == MealTime.DINNER:
            dessert = self.selector.choose(pools.desserts)
            if dessert is not None and state.extra_fits(dessert):
                state = state.with_extra(dessert)

        beverage = self.selector.choose(pools.beverages)
        if beverage is not None and state.extra_fits(beverage):
            state = state.with_extra(beverage)

        for _ in range(EXTRA_SIDE_PICKS):
            side = self.selector.choose(pools.sides)
            if side is not None and state.remaining >= side.calories:
                state = state.with_side(side)

        if state.remaining <= 0:
            return state.recipes(fallback)
        return None
