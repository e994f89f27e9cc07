"""Basic Feature Usage Example.

This example demonstrates the fundamental usage of contextual-flags:
- Declaring features in code with MemoryFeatureProvider and FeatureBuilder
- Describing callers with DictionaryContext and @options_context
- Evaluating variants and reading the merged configuration
- Binding the merged configuration onto an options dataclass

To run this example:
    python examples/basic_usage.py
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from contextual_flags import (
    DictionaryContext,
    FeatureBuilder,
    FeatureMetadata,
    MemoryFeatureProvider,
    VariantResolver,
    options_context,
)


@dataclass
class ThemeOptions:
    """Settings the application reads, filled from the selected variants."""

    dark_mode: bool = False
    accent_color: str = "blue"
    metadata: FeatureMetadata | None = None


@options_context
@dataclass(frozen=True)
class UserContext:
    """Attributes of the current caller exposed to feature filters."""

    user_id: str
    market: str
    app_version: str = "1.0.0"
    tags: list[str] = field(default_factory=list)


def build_provider() -> MemoryFeatureProvider:
    """Create a provider holding a few sample features."""
    provider = MemoryFeatureProvider(name="App")

    # Dark mode for everyone
    FeatureBuilder("DarkMode", provider=provider).variant("On", {"Theme": {"DarkMode": True}}).save()

    # Accent color only for the US and Canada
    (
        FeatureBuilder("Accent", provider=provider)
        .filter("market")
        .matches("US")
        .matches("CA")
        .save()
        .variant("Green", {"Theme": {"AccentColor": "green"}})
        .save()
    )

    # Disabled features are never evaluated
    (
        FeatureBuilder("Beta", provider=provider)
        .enabled(False)
        .variant("On", {"Theme": {"AccentColor": "purple"}})
        .save()
    )
    return provider


async def main() -> None:
    """Evaluate the sample features for two users."""
    resolver = VariantResolver([build_provider()])

    print("\n--- Dictionary context ---\n")
    result = await resolver.evaluate_details(DictionaryContext(UserId="user-123", Market="US"))
    print(f"Selected variants: {result.variant_ids}")
    print(f"Merged configuration: {result.configuration}")
    print(f"Accent color: {result.get_section('Theme:AccentColor')}")

    print("\n--- Options context bound onto a dataclass ---\n")
    options = await resolver.evaluate_options(ThemeOptions, "Theme", UserContext(user_id="user-456", market="DE"))
    print(f"Dark mode: {options.dark_mode}")
    print(f"Accent color: {options.accent_color}")
    if options.metadata is not None:
        for item in options.metadata:
            print(f"  {item.feature_name} -> {item.variant_id} (from {item.feature_provider})")


if __name__ == "__main__":
    asyncio.run(main())
