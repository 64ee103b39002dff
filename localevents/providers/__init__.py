"""외부 데이터 제공자 - export only."""

from .seed_provider import SeedProvider, StaticSeedProvider, load_seed_provider

__all__ = ["SeedProvider", "StaticSeedProvider", "load_seed_provider"]
