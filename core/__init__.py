"""
Core shared utilities: error taxonomy, SQLite connections and UTC timestamps.
"""
