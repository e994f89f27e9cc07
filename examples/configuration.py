"""Configuration Provider Example.

This example demonstrates loading features from configuration:
- Declaring features, filters and variants in JSON
- Filter expressions on context attributes
- Variant priorities deciding between overlapping variants
- Reloading the configuration at runtime
- Caching merged configurations across evaluations

To run this example:
    python examples/configuration.py
"""

from __future__ import annotations

import asyncio
import json

from contextual_flags import (
    ConfigurationFeatureProvider,
    DictionaryContext,
    MergedConfigurationCache,
    ResolverConfig,
    VariantResolver,
)

FEATURES = json.loads(
    """
    {
        "Search": {
            "Salt": "search-2024",
            "Filters": {"Market": ["US", "UK"]},
            "Variants": {
                "Fast": {"Allocation": "100%", "Settings": {"Search": {"Engine": "v2", "PageSize": 20}}},
                "Beta": {
                    "Allocation": "100%",
                    "Priority": 1,
                    "Filters": {"Tier": "beta", "AppVersion": "[2.0.0;3.0.0)"},
                    "Settings": {"Search": {"Engine": "v3"}}
                }
            }
        },
        "Banner": {
            "AllocationUnit": "SessionId",
            "Variants": {
                "Holiday": {"Allocation": "50%", "Settings": {"Banner": {"Text": "Happy holidays"}}}
            }
        }
    }
    """
)

RESOLVER_SETTINGS = {"AllocationHash": "xxhash", "CollectMetadata": True}


async def main() -> None:
    """Evaluate configured features for a few contexts."""
    provider = ConfigurationFeatureProvider(FEATURES, name="Config")
    cache = MergedConfigurationCache(max_size=128)
    resolver = VariantResolver([provider], config=ResolverConfig.from_mapping(RESOLVER_SETTINGS), cache=cache)

    contexts = {
        "US user": DictionaryContext(UserId="u-1", SessionId="s-1", Market="US", AppVersion="1.4.0"),
        "UK beta tester": DictionaryContext(UserId="u-2", SessionId="s-2", Market="UK", Tier="beta", AppVersion="2.1.0"),
        "DE user": DictionaryContext(UserId="u-3", SessionId="s-3", Market="DE"),
    }

    print("\n--- Evaluations ---\n")
    for label, context in contexts.items():
        result = await resolver.evaluate_details(context)
        print(f"{label}: {result.variant_ids}")
        print(f"  {json.dumps(result.configuration)}")

    print("\n--- Flattened configuration ---\n")
    result = await resolver.evaluate_details(contexts["UK beta tester"])
    for key, value in result.to_configuration_dict().items():
        print(f"{key} = {value}")

    print("\n--- Reload ---\n")
    provider.reload({"Search": {"Variants": {"Classic": {"Allocation": "100%", "Settings": {"Search": {"Engine": "v1"}}}}}})
    result = await resolver.evaluate_details(contexts["DE user"])
    print(f"DE user after reload: {result.get_section('Search:Engine')}")

    stats = cache.stats()
    print(f"\nCache: {stats.hits} hits, {stats.misses} misses, hit rate {stats.hit_rate:.0%}")


if __name__ == "__main__":
    asyncio.run(main())
