"""Event check-in tracker.

Organized by feature module (attendees, stations, checkins, realtime, stats)
with a thin Flask controller layer over async services and repositories.
"""
