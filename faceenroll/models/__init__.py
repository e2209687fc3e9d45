"""
Models package.

- domain/ - face detection payloads, enrollment identities and results
"""
