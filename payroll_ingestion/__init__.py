"""
Payroll ingestion -- the file I/O boundary.

Locates source extracts, parses them into row dicts and writes finished
journals. Nothing in here knows about journal rules; engines never touch
files.
"""
