"""
Project Bank API.

College project bank: students share academic projects, browse and rate
each other's work, and faculty approve or disapprove submissions.
"""
