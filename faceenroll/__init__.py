"""
faceenroll - face enrollment and verification against a cloud face service.
"""

from faceenroll.core.config import VERSION

__version__ = VERSION
