"""
Performance testing package (Locust-based).

Contains the Locust user classes for each onboarding stage, the
wallet-API request helpers, staged load profiles, and a CI threshold
checker that together load, smoke and stress test the wallet/DID
onboarding API.

Stages hand users to each other through the user store: signup creates
records, and every later stage picks users in the previous stage's
``step`` and advances them.  Run the stages in pipeline order, or use
the ``onboarding`` tag to drive fresh users through all of them.

Key Concepts Demonstrated:
- One user class per stage, selected via ``--tags``
- Run-scoped store handle built in the ``test_start`` hook
- Named ramp profiles played through a ``LoadTestShape``
- CSV-based threshold gates for automated pass/fail decisions
"""
