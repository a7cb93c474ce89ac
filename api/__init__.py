"""HTTP adapter for the accounts core (Flask)."""
