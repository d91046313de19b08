"""GP orders — core infrastructure (logging)."""
