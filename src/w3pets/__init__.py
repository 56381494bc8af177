"""
W3Pets marketplace API.

Authentication, session handling and seller onboarding for the W3Pets
pet marketplace.
"""

__version__ = "1.0.0"
