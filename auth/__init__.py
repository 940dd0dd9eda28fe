"""auth/ -- Authentication and authorization package for the Funko store.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, cache/, catalog/, or notifications/.
api/ imports from auth/, not the other way around.
"""
