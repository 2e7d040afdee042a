"""Feature engineering package: VaultSnapshot → FeatureVector (see extractor)."""
