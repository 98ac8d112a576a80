"""MapaLister upload pipeline.

Validates uploaded GeoJSON contact maps, recovers the application state
embedded in them (settings, access token, reference points), applies it
to a settings store and exports the document back out with refreshed
state so a later upload restores it.
"""

__version__ = "0.1.0"
