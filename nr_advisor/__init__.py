"""
NR settings advisor.

Recommends 5G NR subcarrier spacing, frequency band and cyclic prefix mode
for an area from OpenStreetMap building and road data and the population
density of the nearest place.
"""
__version__ = "0.1.0"
