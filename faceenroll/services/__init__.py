"""
Services package.

- face_api/ - async client for the remote face service
- enrollment/ - enrollment session workflow
- enrollment_service.py - enrollment facade
- quality_filters.py - frame quality checks
- cancellation.py - cancellation token
"""
