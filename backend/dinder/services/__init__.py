"""Session domain services: lifecycle, selections and overlap.

This package holds the decision logic shared by HTTP routes and socket
handlers, keeping transport concerns separated from the matching rules.
All state lives in the store; these functions read it fresh on every call.
"""
