"""
Locust scenario user classes.

Each module in this package defines the Locust ``HttpUser`` subclasses
for one onboarding stage:

- :mod:`.signup`: create new users
- :mod:`.signin`: sign in signed-up users
- :mod:`.wallet`: create wallets for signed-in users
- :mod:`.did`: create and retrieve DIDs
- :mod:`.onboarding`: run a fresh user through every stage

All concrete scenarios inherit from :class:`.base.StageUser`, which
holds the shared store handle and the stage's coordinator.
"""
