"""GP orders — configuration."""
