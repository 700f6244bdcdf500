"""Core mathematics and configuration for the Edge Estimator.

This package contains pure, sport-aware building blocks:

- ``odds_math``    - odds conversion, implied probability, vig, normal CDF
- ``kelly``        - Kelly criterion and flat unit sizing
- ``sport_config`` - per-sport constants (margin SD, home advantage, ids)
- ``team_stats``   - immutable per-team stat snapshots
- ``probability``  - predicted margin, cover probability, hockey totals

Nothing in this package imports from ``backend.services`` or ``backend.models``.
All modules are side-effect-free and unit-testable in isolation.
"""
