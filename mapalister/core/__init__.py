"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Settings catalog, metadata locations, export literals
- exceptions: Custom exception hierarchy
- ingress: File-input guard and asynchronous reads
- scheduler: Coalescing (debounce) scheduler
- collaborators: Interfaces for presentation, reference marker, identity, map view
"""
