"""auth/ -- Admin session management for the passport service.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or cache/ at runtime (the cache is injected).
api/ imports from auth/, not the other way around.
"""
