"""
Tick ingestion module.

Normalizes raw gateway quotes into ticks, derives the last significant
digit and maintains the bounded digit/price buffers the rest of the engine
reads from.
"""
