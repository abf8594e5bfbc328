"""tasks/ -- Owner-scoped to-do list package for Taskify.

Layer rule: tasks/ imports only stdlib, third-party libraries, core/ and
(for typing) auth/. It does NOT import from api/.
"""
