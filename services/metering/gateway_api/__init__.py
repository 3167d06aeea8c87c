"""Gateway API: metered chat and account statistics HTTP routes."""
