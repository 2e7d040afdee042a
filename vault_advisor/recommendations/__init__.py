"""
Recommendation engine: converts classified vaults into ranked,
profile-specific recommendations with human-readable rationale.

Modules
-------
scorer : ScoreComponents dataclass + compute_score() + build_rationale()
         — pure functions, no I/O.
ranker : select_candidates() + recommend() + build_recommendation_result().
"""
