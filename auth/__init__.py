"""auth/ -- Accounts, credentials, session tokens, and the authorization gate.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or listings/.
api/ imports from auth/, not the other way around.
"""
