"""
Shared, cross-cutting code for the API.

`core/` holds the building blocks every feature uses: settings, logging,
DB wiring and the query layer (`core.orm`). Keep feature-specific queries
and business logic in the corresponding feature package (e.g. `users/`).
"""
