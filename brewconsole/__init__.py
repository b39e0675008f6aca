"""BrewConsole: data layer and operator CLI for a multi-tenant coffee-chain admin console."""

__version__ = "0.1.0"
