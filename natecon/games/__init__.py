"""
Game content packages.

national_economy holds the base and Glory card tables and the setup that
deals a new table from them.
"""
