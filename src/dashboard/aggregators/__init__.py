"""Dashboard aggregators.

One module per metric family. Every aggregator is a pure function of the
collections it is given: it never mutates them, never raises on missing or
malformed fields, and returns zero/empty defaults for whatever it cannot
compute.
"""
