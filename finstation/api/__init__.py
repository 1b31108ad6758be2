"""HTTP API over the scenario store, projection and valuation."""
