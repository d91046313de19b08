"""GP orders — command line tools."""
