"""
Business services: account lifecycle, seller onboarding and their collaborators.
"""
