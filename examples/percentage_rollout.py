"""Percentage Rollout Example.

This example demonstrates gradual rollouts with contextual-flags:
- Rolling a change out to a percentage of users
- Restricting a rollout to markets and app versions
- Checking that allocation is deterministic per user
- Widening the rollout without moving users who already have it

Users are placed in the allocation space by hashing their identifier with
the feature salt, so a user keeps their position between evaluations and
across processes.

To run this example:
    python examples/percentage_rollout.py
"""

from __future__ import annotations

import asyncio

from contextual_flags import DictionaryContext, FeatureBuilder, MemoryFeatureProvider, VariantResolver

USERS = [f"user-{index}" for index in range(1000)]


def checkout_rollout(provider: MemoryFeatureProvider, percentage: float) -> None:
    """Publish the new checkout to ``percentage`` percent of US and CA users on 2.x."""
    (
        FeatureBuilder("NewCheckout", provider=provider)
        .salt("new-checkout-2024")
        .filter("Market")
        .matches("US")
        .matches("CA")
        .save()
        .filter("AppVersion")
        .in_range("[2.0.0;3.0.0)")
        .save()
        .rollout(percentage, {"Checkout": {"Version": 2}})
        .save()
    )


async def count_enabled(resolver: VariantResolver, market: str = "US", version: str = "2.1.0") -> set[str]:
    """Return the users receiving the new checkout."""
    enabled = set()
    for user_id in USERS:
        context = DictionaryContext(UserId=user_id, Market=market, AppVersion=version)
        result = await resolver.evaluate_details(context)
        if result.get_section("Checkout:Version") == 2:
            enabled.add(user_id)
    return enabled


async def main() -> None:
    """Run a rollout at 10% and widen it to 50%."""
    provider = MemoryFeatureProvider(name="Rollouts")
    resolver = VariantResolver([provider])

    print("\n--- 10% rollout ---\n")
    checkout_rollout(provider, 10)
    first_wave = await count_enabled(resolver)
    print(f"Users with the new checkout: {len(first_wave)} of {len(USERS)}")

    print("\n--- Deterministic allocation ---\n")
    again = await count_enabled(resolver)
    print(f"Same users on re-evaluation: {again == first_wave}")

    print("\n--- Filters ---\n")
    print(f"Users in DE: {len(await count_enabled(resolver, market='DE'))}")
    print(f"Users on 1.9.0: {len(await count_enabled(resolver, version='1.9.0'))}")

    print("\n--- Widened to 50% ---\n")
    checkout_rollout(provider, 50)
    second_wave = await count_enabled(resolver)
    print(f"Users with the new checkout: {len(second_wave)} of {len(USERS)}")
    print(f"Everyone from the first wave kept it: {first_wave <= second_wave}")


if __name__ == "__main__":
    asyncio.run(main())
