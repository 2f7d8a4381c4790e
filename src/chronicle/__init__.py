"""
Chronicle - a documentation-maintenance agent.

Keeps a project's knowledge base, journal and daily documents tidy on a
schedule: captures fresh records as snippets, re-validates categories,
flags near-duplicates and compiles each day's entries into documents.
"""

__version__ = "0.1.0"
