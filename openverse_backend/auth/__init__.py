"""
End-user authentication: password hashing, JWT sessions, Google OAuth and
the registration email.
"""
