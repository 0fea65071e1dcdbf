"""
Job Database UI - Flask + HTMX frontend for the student company table.

Provides the company table with column selection, sorting, filters and
bookmarks, plus the admin analytics dashboard.
"""
