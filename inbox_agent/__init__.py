"""
Inbox agent API: streams email insights, narrative briefings and draft replies over SSE.
"""
