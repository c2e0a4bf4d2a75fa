"""Framework integrations for twofa."""
