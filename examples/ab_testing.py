"""A/B Testing Example.

This example demonstrates using contextual-flags for experiments:
- Splitting traffic between configurations with ab_experiment
- Multivariate tests with explicit allocation ranges
- Allocating by session instead of user
- Pinning QA users to a variant with RuleVariantOverride
- Recording which variant each feature applied

To run this example:
    python examples/ab_testing.py
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

from contextual_flags import (
    DictionaryContext,
    FeatureBuilder,
    MemoryFeatureProvider,
    RuleVariantOverride,
    VariantResolver,
)
from contextual_flags.contrib.logging import LoggingHook


def build_provider() -> MemoryFeatureProvider:
    """Create the experiments."""
    provider = MemoryFeatureProvider(name="Experiments")

    # Example 1: Classic 50/50 split between two button colors
    FeatureBuilder("ButtonColor", provider=provider).ab_experiment(
        '{"Button": {"Color": "blue"}}', '{"Button": {"Color": "green"}}'
    ).save()

    # Example 2: Three-way pricing test, allocated per session
    (
        FeatureBuilder("PricingPage", provider=provider)
        .allocation_unit("SessionId")
        .variant("Control", {"Pricing": {"Layout": "table"}}, allocation="[0;0.34)")
        .variant("Cards", {"Pricing": {"Layout": "cards"}}, allocation="[0.34;0.67)")
        .variant("Slider", {"Pricing": {"Layout": "slider"}}, allocation="[0.67;1]")
        .save()
    )
    return provider


async def main() -> None:
    """Show the traffic split, overrides and metadata."""
    provider = build_provider()
    overrides = RuleVariantOverride(name="QA").add(
        "PricingPage", "Slider", property_name="UserId", values=["qa-1", "qa-2"]
    )
    resolver = VariantResolver([provider], override_providers=[overrides])

    print("\n--- Traffic split over 1000 users ---\n")
    colors: Counter[str] = Counter()
    layouts: Counter[str] = Counter()
    for index in range(1000):
        context = DictionaryContext(UserId=f"user-{index}", SessionId=f"session-{index}")
        result = await resolver.evaluate_details(context)
        colors[result.get_section("Button:Color")] += 1
        layouts[result.get_section("Pricing:Layout")] += 1
    print(f"Button colors: {dict(colors)}")
    print(f"Pricing layouts: {dict(layouts)}")

    print("\n--- QA override ---\n")
    result = await resolver.evaluate_details(DictionaryContext(UserId="qa-1", SessionId="session-qa"))
    item = result.metadata.get("PricingPage") if result.metadata is not None else None
    if item is not None:
        print(f"Variant: {item.variant_id}, overridden: {item.is_overridden} by {item.override_provider_name}")

    print("\n--- Logged evaluation ---\n")
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    resolver.add_hook(LoggingHook(logger=logging.getLogger("experiments"), evaluation_level="INFO"))
    await resolver.evaluate(DictionaryContext(UserId="user-42", SessionId="session-42"))


if __name__ == "__main__":
    asyncio.run(main())
