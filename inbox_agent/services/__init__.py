"""
External collaborators: Gmail and the chat model.
"""
