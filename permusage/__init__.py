"""Permission usage hub: which apps used which permission groups, and when."""
