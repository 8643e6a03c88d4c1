"""
Job Capture Agent
Detects job postings in the page the user is viewing and relays them
to the desktop application.
"""

__version__ = "0.3.0"
