"""Pipeline stages.

Each activity performs a single unit of work within an upload or export:
- validate_upload: Parse JSON and validate features with partial-failure recovery
- extract_metadata: Recover embedded application state from historical locations
- apply_settings: Merge extracted settings into the store, debounced
- export_document: Rebuild ``userData`` and serialise the current document
"""
