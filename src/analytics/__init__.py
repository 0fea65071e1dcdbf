"""
Interaction logging and admin analytics.
"""
