"""Source-format adapters producing canonical transaction lines."""
